"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import json

from dotenv import load_dotenv

from .protocol.constants import DISCOVERY_PORT


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Config:
    """
    Discovery configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (UBNT_*)
    2. Config file (JSON)
    3. Default values
    """
    # Network
    ipv6_enabled: bool = False
    port: int = DISCOVERY_PORT

    # Scan
    scan_duration_ms: int = 10000
    scan_ticks: int = 20

    # Sockets
    receive_timeout: float = 0.3  # seconds
    receive_buffer: int = 4096 * 2

    # Model descriptions (key=value file)
    models_file: Optional[Path] = None

    # Logging
    log_level: str = 'WARNING'

    def __post_init__(self):
        if self.scan_ticks < 1:
            raise ValueError(f"scan_ticks must be positive, got {self.scan_ticks}")
        if self.receive_timeout is None or self.receive_timeout <= 0:
            raise ValueError(f"receive_timeout must be positive, got {self.receive_timeout}")

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        config = cls()

        ipv6 = os.getenv('UBNT_IPV6_ENABLED')
        if ipv6 is not None:
            config.ipv6_enabled = _parse_bool(ipv6)
        config.port = int(os.getenv('UBNT_PORT', config.port))

        config.scan_duration_ms = int(os.getenv('UBNT_SCAN_DURATION_MS', config.scan_duration_ms))
        config.scan_ticks = int(os.getenv('UBNT_SCAN_TICKS', config.scan_ticks))

        config.receive_timeout = float(os.getenv('UBNT_RECEIVE_TIMEOUT', config.receive_timeout))
        config.receive_buffer = int(os.getenv('UBNT_RECEIVE_BUFFER', config.receive_buffer))

        models_file = os.getenv('UBNT_MODELS_FILE')
        if models_file:
            config.models_file = Path(models_file)

        config.log_level = os.getenv('UBNT_LOG_LEVEL', config.log_level)

        config.__post_init__()
        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        config.ipv6_enabled = data.get('ipv6_enabled', config.ipv6_enabled)
        config.port = data.get('port', config.port)

        config.scan_duration_ms = data.get('scan_duration_ms', config.scan_duration_ms)
        config.scan_ticks = data.get('scan_ticks', config.scan_ticks)

        config.receive_timeout = data.get('receive_timeout', config.receive_timeout)
        config.receive_buffer = data.get('receive_buffer', config.receive_buffer)

        if data.get('models_file'):
            config.models_file = Path(data['models_file'])

        config.log_level = data.get('log_level', config.log_level)

        config.__post_init__()
        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'ipv6_enabled': self.ipv6_enabled,
            'port': self.port,
            'scan_duration_ms': self.scan_duration_ms,
            'scan_ticks': self.scan_ticks,
            'receive_timeout': self.receive_timeout,
            'receive_buffer': self.receive_buffer,
            'models_file': str(self.models_file) if self.models_file else None,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    config = Config()

    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    env_config = Config.from_env()
    defaults = Config()

    # Env takes precedence for non-default values
    for key in ['ipv6_enabled', 'port', 'scan_duration_ms', 'scan_ticks',
                'receive_timeout', 'receive_buffer', 'models_file', 'log_level']:
        env_val = getattr(env_config, key)
        if env_val != getattr(defaults, key):
            setattr(config, key, env_val)

    return config


# Example config file template
EXAMPLE_CONFIG = """
{
  "ipv6_enabled": false,
  "port": 10001,
  "scan_duration_ms": 10000,
  "scan_ticks": 20,
  "receive_timeout": 0.3,
  "receive_buffer": 8192,
  "models_file": "./models.properties",
  "log_level": "WARNING"
}
"""
