"""Tracker settings loaded from YAML."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"


class Config(BaseModel):
    """Where tracker data lives and how often reminders are re-checked."""

    data_dir: Path = Path("data")
    records_file: str = "internships.json"
    alerts_file: str = "alerts.json"
    export_dir: Path = Path("exports")
    calendar_filename: str = "internship-events.ics"
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    # Exact-boundary rules need at least hourly re-evaluation
    evaluation_interval_minutes: int = Field(default=60, ge=1, le=1440)

    @property
    def records_path(self) -> Path:
        return self.data_dir / self.records_file

    @property
    def alerts_path(self) -> Path:
        return self.data_dir / self.alerts_file


_config: Optional[Config] = None


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(
            f"No tracker settings at {path}. "
            "Start from config/config.yaml.example or drop --config to use the defaults."
        )
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Optional[Path] = None) -> Config:
    """Read tracker settings once per process.

    An explicit path must exist. Without one, ``config/config.yaml`` is used
    when present and the built-in defaults otherwise.
    """
    global _config

    if _config is None:
        if config_path is not None:
            _config = Config(**_read_yaml(config_path))
        elif DEFAULT_CONFIG_PATH.exists():
            _config = Config(**_read_yaml(DEFAULT_CONFIG_PATH))
        else:
            _config = Config()
    return _config


def get_config() -> Config:
    """Settings for the current run, loading the defaults on first use."""
    return _config if _config is not None else load_config()


def reset_config() -> None:
    global _config
    _config = None
