"""Registry URL parsing and Basic authorization helpers."""

import base64
import posixpath
from urllib.parse import parse_qs, urlsplit

from common.constants import DEFAULT_VERSION, VERSION_PLACEHOLDER
from common.types import RegistryInfo


def parse_registry(registry: str) -> RegistryInfo:
    """
    Split a registry URL into the request URL and the artifact version.

    The query string is dropped from the request URL; ``version`` defaults to
    ``latest`` when missing or left as the ``<VERSION>`` placeholder.

    Raises:
        ValueError: If the URL has no scheme or host
    """
    parts = urlsplit(registry.strip())
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid registry URL: {registry}")

    version = parse_qs(parts.query).get('version', [''])[0]
    if not version or version == VERSION_PLACEHOLDER:
        version = DEFAULT_VERSION

    path = posixpath.normpath(parts.path) if parts.path else ''
    if path in ('.', '/'):
        path = ''

    return RegistryInfo(
        request_url=f"{parts.scheme}://{parts.netloc}{path}",
        version=version,
        scheme=parts.scheme,
        host=parts.netloc,
        path=path,
    )


def make_authorization(username: str, password: str) -> str:
    """Build an ``Authorization`` header value for HTTP Basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return f"Basic {token}"


def split_credentials(value: str) -> tuple[str, str | None]:
    """
    Split ``user[:password]`` on the first colon.

    Returns:
        Tuple of (username, password); password is None when not given
    """
    username, sep, password = value.partition(':')
    return username, (password if sep and password else None)
