"""
ob-test Server Configuration

Dataclass holding every tunable of the mock server, with environment variable
loading for container deployments.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_PORT = 9999
DEFAULT_EXTERNAL_URL = "https://console.dev.initializ.ai/login/"

LOG_LEVELS = ('debug', 'info', 'warning', 'error')

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass
class ServerConfig:
    """Configuration for the ob-test server."""

    # Server options
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "info"

    # Outbound call made by /external
    external_url: str = DEFAULT_EXTERNAL_URL
    external_timeout: float = 30.0  # seconds, applies to connect, read and write

    # File cycle performed by /file
    file_dir: str = "."
    unique_file_paths: bool = True  # False = every request shares ./sample.txt

    # Scales every simulated delay (1.0 = literal latencies)
    delay_multiplier: float = 1.0

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if self.external_timeout <= 0:
            raise ValueError(f"external_timeout must be positive, got {self.external_timeout}")
        if self.delay_multiplier < 0:
            raise ValueError(f"delay_multiplier cannot be negative, got {self.delay_multiplier}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """
        Build a config from OBTEST_* environment variables.

        Unset or empty variables fall back to the dataclass defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ServerConfig instance

        Raises:
            ValueError: If a variable holds a value of the wrong type
        """
        env = os.environ if environ is None else environ
        overrides = {}

        def read(name: str) -> Optional[str]:
            value = (env.get(name) or '').strip()
            return value or None

        if read('OBTEST_HOST'):
            overrides['host'] = read('OBTEST_HOST')
        if read('OBTEST_PORT'):
            overrides['port'] = int(read('OBTEST_PORT'))
        if read('OBTEST_LOG_LEVEL'):
            overrides['log_level'] = read('OBTEST_LOG_LEVEL').lower()
        if read('OBTEST_EXTERNAL_URL'):
            overrides['external_url'] = read('OBTEST_EXTERNAL_URL')
        if read('OBTEST_EXTERNAL_TIMEOUT'):
            overrides['external_timeout'] = float(read('OBTEST_EXTERNAL_TIMEOUT'))
        if read('OBTEST_FILE_DIR'):
            overrides['file_dir'] = read('OBTEST_FILE_DIR')
        if read('OBTEST_UNIQUE_FILE_PATHS'):
            overrides['unique_file_paths'] = _parse_bool('OBTEST_UNIQUE_FILE_PATHS', read('OBTEST_UNIQUE_FILE_PATHS'))
        if read('OBTEST_DELAY_MULTIPLIER'):
            overrides['delay_multiplier'] = float(read('OBTEST_DELAY_MULTIPLIER'))

        return cls(**overrides)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")
