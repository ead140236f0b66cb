import json
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import balaur.settings as default_settings

log = logging.getLogger(__name__)

# Maps the keys of the JSON config file to BalaurConfig fields.
CONFIG_KEYS = {
    "main": "main",
    "workers": "workers",
    "pidfilePath": "pidfile_path",
    "stdOutPath": "stdout_path",
    "stdErrPath": "stderr_path",
}


@dataclass(frozen=True)
class BalaurConfig:
    """
    The immutable options record consumed by the supervisor.

    A sink path of None means the stream is discarded in the daemon.
    """
    main: str = default_settings.DEFAULT_MAIN
    workers: int = default_settings.DEFAULT_WORKERS
    pidfile_path: Path = Path(default_settings.DEFAULT_PIDFILE_PATH)
    stdout_path: Optional[Path] = Path(default_settings.DEFAULT_STDOUT_PATH)
    stderr_path: Optional[Path] = Path(default_settings.DEFAULT_STDERR_PATH)

    def __post_init__(self) -> None:
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ValueError(f"'workers' must be a positive integer, got {self.workers!r}.")
        # Coerce path strings to Path objects
        object.__setattr__(self, "pidfile_path", Path(self.pidfile_path))
        for name in ("stdout_path", "stderr_path"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, Path(value))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BalaurConfig":
        """
        Builds a config record from the key layout of the JSON config file.
        Unknown keys and invalid worker counts are ignored with a warning.

        :param data: A mapping such as the parsed balaur.config.json.
        :return: The resulting BalaurConfig.
        """
        values: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = CONFIG_KEYS.get(key)
            if field_name is None:
                log.warning(f"Config setting '{key}' is not known. Ignoring.")
                continue
            values[field_name] = value

        workers = values.get("workers")
        if workers is not None and (isinstance(workers, bool) or not isinstance(workers, int) or workers < 1):
            log.warning(f"Config setting 'workers' must be a positive integer, got {workers!r}. Using default.")
            values.pop("workers")
        elif workers is None:
            values.pop("workers", None)

        for field_name in ("main", "pidfile_path"):
            if not values.get(field_name):
                values.pop(field_name, None)

        # An explicit null discards the stream, an empty path falls back to the default sink
        for field_name in ("stdout_path", "stderr_path"):
            if field_name in values and values[field_name] is not None and not values[field_name]:
                values.pop(field_name)

        return cls(**values)


def load_config(config_path: Optional[Union[str, Path]] = None) -> BalaurConfig:
    """
    Loads the config record from the JSON config file, falling back to defaults.

    :param config_path: Path to the config file. Defaults to BALAUR_CONFIG_FILE.
    :return: The loaded BalaurConfig.
    """
    path = Path(config_path or default_settings.CONFIG_FILE_NAME)
    if not path.exists():
        log.debug(f"No config file at '{path}', using defaults.")
        return BalaurConfig()

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top-level JSON value is not an object")
    except (json.JSONDecodeError, IOError, ValueError) as e:
        log.warning(f"Unable to read Balaur config file, using defaults. ({path}: {e})")
        return BalaurConfig()

    log.info(f"Loading configuration from {path}")
    return BalaurConfig.from_mapping(data)
