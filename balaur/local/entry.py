import os
import sys
import logging
import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

import balaur.settings as default_settings

log = logging.getLogger(__name__)


class EntryPointError(Exception):
    """Raised when the configured 'main' cannot be resolved to a callable."""


def _import_from_path(file_path: Path) -> ModuleType:
    """Imports a module from a .py file path."""
    module_name = file_path.stem
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise EntryPointError(f"Cannot load '{file_path}' as a Python module.")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def resolve_entry(entry: str) -> Callable[[], Any]:
    """
    Resolves the function to daemonize from a 'module:attribute' string.

    The module part may also be a path to a .py file. The attribute defaults
    to 'main'. The current working directory is importable.

    :param entry: The entry specification, e.g. 'app:serve' or 'srv/app.py'.
    :return: The resolved callable.
    :raises EntryPointError: If the module or attribute cannot be resolved.
    """
    module_part, _, attribute = entry.partition(":")
    attribute = attribute or default_settings.DEFAULT_ENTRY_ATTRIBUTE
    if not module_part:
        raise EntryPointError(f"Invalid entry point '{entry}'. Expected 'module:attribute'.")

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        if module_part.endswith(".py"):
            module = _import_from_path(Path(module_part).resolve())
        else:
            module = importlib.import_module(module_part)
    except EntryPointError:
        raise
    except Exception as e:
        raise EntryPointError(f"Unable to import '{module_part}': {e}") from e

    target = module
    for name in attribute.split("."):
        try:
            target = getattr(target, name)
        except AttributeError as e:
            raise EntryPointError(f"Module '{module_part}' has no attribute '{attribute}'.") from e

    if not callable(target):
        raise EntryPointError(f"Entry point '{entry}' is not callable.")

    log.debug(f"Resolved entry point '{entry}'.")
    return target
