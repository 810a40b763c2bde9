"""
Transmission settings.

Defaults can be overridden per session or loaded from a JSON file at
~/.config/sbplprinter/config.json:

    {"deadline": 60, "poll_interval": 1.0}
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

from .exceptions import ValidationError

CONFIG_DIR = Path.home() / ".config" / "sbplprinter"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_PORT = 9100


@dataclass
class TransmissionConfig:
    """
    Timing for the health handshake.

    Attributes:
        deadline: Seconds a busy printer may stay busy before the send fails
        poll_interval: Seconds between health inquiries while busy
        read_timeout: Seconds to wait for a complete status frame
        max_attempts: Give up after this many inquiries (None = deadline only)
        connect_timeout: Seconds to wait for the socket to open
    """

    deadline: float = 30.0
    poll_interval: float = 0.5
    read_timeout: float = 5.0
    max_attempts: Optional[int] = None
    connect_timeout: float = 5.0

    def __post_init__(self):
        if self.deadline < 0:
            raise ValidationError(f"deadline must be >= 0, got {self.deadline}")
        if self.poll_interval < 0:
            raise ValidationError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if self.read_timeout <= 0:
            raise ValidationError(f"read_timeout must be > 0, got {self.read_timeout}")
        if self.connect_timeout <= 0:
            raise ValidationError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValidationError(f"max_attempts must be >= 1, got {self.max_attempts}")

    @classmethod
    def from_dict(cls, data: dict) -> "TransmissionConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[Union[str, Path]] = None) -> TransmissionConfig:
    """Load settings from a JSON file.

    Args:
        path: Config file path. Defaults to ~/.config/sbplprinter/config.json.

    Returns:
        TransmissionConfig; defaults if the file does not exist.

    Raises:
        ValidationError: If the file is not a JSON object or holds bad values
    """
    config_path = Path(path) if path is not None else CONFIG_FILE
    if not config_path.exists():
        return TransmissionConfig()

    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Config file {config_path} must contain a JSON object")

    try:
        return TransmissionConfig.from_dict(data)
    except TypeError as e:
        raise ValidationError(f"Invalid config file {config_path}: {e}") from e
