"""Configuration loading."""

from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..exceptions import InvalidConfigError, MissingConfigError
from .settings import DEFAULT_TIMEZONE, Settings

__all__ = ["DEFAULT_TIMEZONE", "Settings", "load_config"]


def load_config(config_file: Optional[Path] = None) -> Settings:
    """Load settings from the environment and an optional env file."""
    if config_file is not None and not config_file.exists():
        raise MissingConfigError(f"Configuration file not found: {config_file}")

    try:
        if config_file is not None:
            return Settings(_env_file=config_file)  # type: ignore[call-arg]
        return Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        missing = [
            ".".join(str(p) for p in err["loc"])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if missing:
            raise MissingConfigError(
                f"Missing required settings: {', '.join(missing)}"
            ) from e
        raise InvalidConfigError(str(e)) from e
