"""
Bridge Configuration Management
Handles connection settings for the Marco chat bridge
"""

import json
import logging
from dataclasses import dataclass, asdict, replace, fields
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any

from utils.env_config import (
    get_config,
    get_config_float,
    get_config_int,
    is_set,
)
from utils.paths import PoloPaths

logger = logging.getLogger(__name__)


class StatusPolicy(Enum):
    """
    How non-2xx, non-404 responses are treated.

    LENIENT parses any such body as the expected shape, which is how the
    game-server plugins have always behaved. A 401 or 500 body is then fed
    to the parser as if it were data, so a warning is logged whenever that
    happens.
    STRICT reports those responses as REJECTED without parsing.
    """
    LENIENT = "lenient"
    STRICT = "strict"


# (env var, field name) pairs recognised by from_env()
ENV_FIELDS = [
    ('POLO_HOST', 'host'),
    ('POLO_PORT', 'port'),
    ('POLO_TOKEN', 'token'),
    ('POLO_CONNECT_TIMEOUT', 'connect_timeout'),
    ('POLO_READ_TIMEOUT', 'read_timeout'),
    ('POLO_POLL_INTERVAL', 'poll_interval'),
    ('POLO_STATUS_POLICY', 'status_policy'),
    ('POLO_LOG_LEVEL', 'log_level'),
]


@dataclass(frozen=True)
class BridgeConfig:
    """Connection settings for the Marco bridge"""
    host: str = "localhost"
    port: int = 8080
    token: str = ""

    # Request bounds (seconds)
    connect_timeout: float = 3.0
    read_timeout: float = 10.0

    # Seconds between inbound polls
    poll_interval: float = 1.0

    status_policy: StatusPolicy = StatusPolicy.LENIENT
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def timeout(self) -> tuple:
        """(connect, read) tuple as accepted by requests"""
        return (self.connect_timeout, self.read_timeout)

    @property
    def deadline(self) -> float:
        """Wall-clock limit for one whole request, headers and body included"""
        return self.connect_timeout + self.read_timeout

    @classmethod
    def get_config_path(cls) -> Path:
        return PoloPaths.get_config_file()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BridgeConfig':
        """Build a config from a JSON-style dict, ignoring unknown keys.

        Raises:
            ValueError: if a value can't be converted
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {sorted(unknown)}")

        defaults = cls()
        return cls(
            host=str(data.get('host', defaults.host)),
            port=int(data.get('port', defaults.port)),
            token=str(data.get('token', defaults.token) or ""),
            connect_timeout=float(data.get('connect_timeout', defaults.connect_timeout)),
            read_timeout=float(data.get('read_timeout', defaults.read_timeout)),
            poll_interval=float(data.get('poll_interval', defaults.poll_interval)),
            status_policy=StatusPolicy(
                str(data.get('status_policy', defaults.status_policy.value)).lower()
            ),
            log_level=str(data.get('log_level', defaults.log_level)).upper(),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status_policy'] = self.status_policy.value
        return data

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'BridgeConfig':
        """Load configuration from file, falling back to defaults"""
        config_path = Path(path) if path else cls.get_config_path()

        if not config_path.exists():
            logger.info("No bridge config found, using defaults")
            return cls()

        try:
            with open(config_path, 'r') as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")

            config = cls.from_dict(data)
            logger.info(f"Loaded bridge config from {config_path}")
            return config

        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load bridge config {config_path}: {e}")
            return cls()

    def save(self, path: Optional[Path] = None) -> bool:
        """Save configuration to file"""
        config_path = Path(path) if path else self.get_config_path()

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)

            logger.info(f"Saved bridge config to {config_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save bridge config: {e}")
            return False

    @classmethod
    def from_env(cls, base: Optional['BridgeConfig'] = None) -> 'BridgeConfig':
        """Overlay POLO_* environment variables on base (or defaults)"""
        config = base or cls()
        changes: Dict[str, Any] = {}

        if is_set('POLO_HOST'):
            changes['host'] = get_config('POLO_HOST')
        if is_set('POLO_PORT'):
            changes['port'] = get_config_int('POLO_PORT', config.port)
        if is_set('POLO_TOKEN'):
            changes['token'] = get_config('POLO_TOKEN')
        if is_set('POLO_CONNECT_TIMEOUT'):
            changes['connect_timeout'] = get_config_float(
                'POLO_CONNECT_TIMEOUT', config.connect_timeout)
        if is_set('POLO_READ_TIMEOUT'):
            changes['read_timeout'] = get_config_float(
                'POLO_READ_TIMEOUT', config.read_timeout)
        if is_set('POLO_POLL_INTERVAL'):
            changes['poll_interval'] = get_config_float(
                'POLO_POLL_INTERVAL', config.poll_interval)
        if is_set('POLO_STATUS_POLICY'):
            value = get_config('POLO_STATUS_POLICY').strip().lower()
            try:
                changes['status_policy'] = StatusPolicy(value)
            except ValueError:
                logger.warning(f"Unknown POLO_STATUS_POLICY={value!r}, keeping "
                               f"{config.status_policy.value}")
        if is_set('POLO_LOG_LEVEL'):
            changes['log_level'] = get_config('POLO_LOG_LEVEL').strip().upper()

        return replace(config, **changes) if changes else config

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty if none)"""
        problems = []

        if not self.host:
            problems.append("host is empty")
        if not 0 < self.port < 65536:
            problems.append(f"port {self.port} is out of range")
        if not self.token:
            problems.append("token is empty; the bridge will reject requests")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            problems.append("timeouts must be positive")
        if self.poll_interval <= 0:
            problems.append("poll_interval must be positive")

        return problems

    def redacted(self) -> Dict[str, Any]:
        """Config as a dict with the token masked, for display"""
        data = self.to_dict()
        if self.token:
            data['token'] = self.token[:2] + '*' * max(len(self.token) - 2, 4)
        else:
            data['token'] = '(not set)'
        return data
