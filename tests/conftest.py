"""Shared pytest fixtures for all tests."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest

from cli.config import Config
from transfer.registry import make_authorization
from transfer.registry_client import RegistryClient

MIB = 1024 * 1024
AUTHORIZATION = make_authorization('alice@example.com', 's3cret')
ENDPOINT = 'https://registry.test/team/project/generic/chunks/data.bin'


@dataclass
class Call:
    """One request seen by the fake registry."""

    method: str
    path: str
    action: str | None
    params: dict
    body: bytes
    headers: httpx.Headers


class FakeRegistry:
    """
    In-memory registry speaking the part-init/part-upload/part-complete protocol.

    Failures are scripted per call: each entry of ``upload_failures[part]`` or
    ``complete_failures`` is consumed by one request and is either an exception
    to raise or an ``httpx.Response`` to return.
    """

    def __init__(self):
        self.calls: list[Call] = []
        self.upload_id = 'upload-1'
        self.stored_parts: list[dict] | None = None
        self.init_response: httpx.Response | None = None
        self.upload_failures: dict[int, list] = {}
        self.complete_failures: list = []
        self.file_infos: list[dict] = []
        self.list_status = 200
        self.files: dict[str, bytes] = {}
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    def actions(self, name: str) -> list[Call]:
        return [c for c in self.calls if c.action == name]

    @staticmethod
    def _scripted(queue: list):
        if not queue:
            return None
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def handler(self, request: httpx.Request) -> httpx.Response:
        action = request.url.params.get('action')
        self.calls.append(Call(
            method=request.method,
            path=request.url.path,
            action=action,
            params=dict(request.url.params),
            body=request.content,
            headers=request.headers,
        ))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self._respond(request, action)
        finally:
            self.in_flight -= 1

    def _respond(self, request: httpx.Request, action: str | None) -> httpx.Response:
        if action == 'part-init':
            if self.init_response is not None:
                return self.init_response
            data = {'uploadId': self.upload_id}
            if self.stored_parts is not None:
                data['parts'] = self.stored_parts
            return httpx.Response(200, json={'code': 0, 'data': data})

        if action == 'part-upload':
            part = int(request.url.params['partNumber'])
            scripted = self._scripted(self.upload_failures.get(part, []))
            if scripted is not None:
                return scripted
            return httpx.Response(200)

        if action == 'part-complete':
            scripted = self._scripted(self.complete_failures)
            if scripted is not None:
                return scripted
            return httpx.Response(200, json={'code': 0})

        if request.method == 'POST':
            return httpx.Response(200, json={
                'data': {'status': self.list_status, 'fileInfos': self.file_infos}
            })

        if request.method == 'GET' and request.url.path in self.files:
            return httpx.Response(200, content=self.files[request.url.path])

        return httpx.Response(404, json={'message': 'not found'})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_registry():
    """Fresh fake registry per test."""
    return FakeRegistry()


@pytest.fixture
def registry_client(fake_registry):
    """
    Create RegistryClient with the fake registry as transport.

    Args:
        fake_registry: FakeRegistry fixture

    Returns:
        RegistryClient talking to the fake registry
    """
    client = RegistryClient(AUTHORIZATION, 'latest')
    client.session = httpx.AsyncClient(transport=fake_registry.transport())
    return client


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .chunkup directory
    """
    config_dir = tmp_path / '.chunkup'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


def pattern_bytes(size: int, seed: int = 0) -> bytes:
    """Deterministic, non-repeating-per-part content of the given size."""
    block = bytes((i * 31 + seed) % 256 for i in range(251))
    repeats = size // len(block) + 1
    return (block * repeats)[:size]


@pytest.fixture
def make_file(tmp_path):
    """
    Factory writing a file of a given size.

    Returns:
        Callable ``make_file(size, name='data.bin', seed=0) -> Path``
    """
    def _make(size: int, name: str = 'data.bin', seed: int = 0) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pattern_bytes(size, seed))
        return path

    return _make


@pytest.fixture
def sample_file(make_file):
    """12 MiB file, three parts at the default 5 MiB chunk size."""
    return make_file(12 * MIB)
