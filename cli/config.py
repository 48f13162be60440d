"""Configuration management for the chunkup CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path

from common.constants import (
    APP_DIR,
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT_SECONDS,
    FINALIZE_ATTEMPTS,
    FINALIZE_DELAY_SECONDS,
    LOG_DIR,
    MAX_CHUNK_COUNT,
)
from common.types import TransferOptions

DEFAULT_CONFIG_PATH = APP_DIR / 'config.json'


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "concurrency": DEFAULT_CONCURRENCY,
        "chunk_size": DEFAULT_CHUNK_SIZE_BYTES,
        "max_chunk_count": MAX_CHUNK_COUNT,
        "finalize_attempts": FINALIZE_ATTEMPTS,
        "finalize_delay": FINALIZE_DELAY_SECONDS,
        "log_dir": str(LOG_DIR),
    }

    ENV_OVERRIDES = {
        "CHUNKUP_TIMEOUT": ("timeout", int),
        "CHUNKUP_CONCURRENCY": ("concurrency", int),
        "CHUNKUP_LOG_DIR": ("log_dir", str),
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.chunkup/config.json)
        """
        self.config_path = Path(config_path)
        self.data = self._apply_env(self._load())

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.chunkup' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be an object")
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (ValueError, OSError):
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    pass
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError:
                pass
            return config

    def _apply_env(self, config: dict) -> dict:
        """Environment variables win over the file."""
        for name, (key, convert) in self.ENV_OVERRIDES.items():
            value = os.environ.get(name)
            if value:
                config[key] = convert(value)
        return config

    def get_timeout(self) -> float:
        """Request timeout in seconds."""
        return float(self.data.get('timeout', DEFAULT_TIMEOUT_SECONDS))

    def get_concurrency(self) -> int:
        return int(self.data.get('concurrency', DEFAULT_CONCURRENCY))

    def resolve_concurrency(self, concurrency: int | None = None) -> int:
        """The --concurrency flag when given, otherwise the configured value."""
        return concurrency if concurrency is not None else self.get_concurrency()

    def get_log_dir(self) -> Path:
        return Path(self.data.get('log_dir', str(LOG_DIR))).expanduser()

    def get_finalize_retry_config(self) -> dict:
        """
        Get finalize retry configuration.

        Returns:
            Dictionary with 'attempts' and 'delay' (seconds)
        """
        return {
            'attempts': int(self.data.get('finalize_attempts', FINALIZE_ATTEMPTS)),
            'delay': float(self.data.get('finalize_delay', FINALIZE_DELAY_SECONDS)),
        }

    def transfer_options(
        self,
        concurrency: int | None = None,
        chunk_size: int | None = None
    ) -> TransferOptions:
        """
        Build engine options; explicit arguments override stored values.

        Args:
            concurrency: Number of parts in flight
            chunk_size: Default chunk size in bytes
        """
        retry = self.get_finalize_retry_config()
        return TransferOptions(
            chunk_size=chunk_size or int(self.data.get('chunk_size', DEFAULT_CHUNK_SIZE_BYTES)),
            max_chunk_count=int(self.data.get('max_chunk_count', MAX_CHUNK_COUNT)),
            concurrency=self.resolve_concurrency(concurrency),
            finalize_attempts=retry['attempts'],
            finalize_delay=retry['delay'],
        )
