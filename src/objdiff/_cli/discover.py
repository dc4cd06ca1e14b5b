"""Utilities to locate the pydantic model used to validate compared documents.

This module was adapted from `fastapi_cli.discover` of package `fastapi-cli` version 0.0.8 (77e6d1f).
"""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


@dataclass
class ModuleData:
    """Module data for a Python module."""

    module_import_str: str
    extra_sys_path: Path
    module_paths: list[Path]


def get_module_data_from_path(path: Path) -> ModuleData:
    """Get module data from a file path.

    Args:
        path: Path to a Python file or package

    Returns:
        ModuleData containing module import information

    """
    use_path = path.resolve()
    module_path = use_path
    if use_path.is_file() and use_path.stem == "__init__":
        module_path = use_path.parent
    module_paths = [module_path]
    extra_sys_path = module_path.parent
    for parent in module_path.parents:
        init_path = parent / "__init__.py"
        if init_path.is_file():
            module_paths.insert(0, parent)
            extra_sys_path = parent.parent
        else:
            break

    module_str = ".".join(p.stem for p in module_paths)
    return ModuleData(
        module_import_str=module_str,
        extra_sys_path=extra_sys_path.resolve(),
        module_paths=module_paths,
    )


def load_model_class(model_path: str) -> type[BaseModel]:
    """Load a pydantic model class from ``module.path:ModelName`` or ``path/to/script.py:ModelName``.

    Args:
        model_path: Location of the model class.

    Returns:
        The model class.

    Raises:
        ValueError: If the format is invalid or the class does not exist.
        TypeError: If the named object is not a pydantic model class.
        ImportError: If the module cannot be imported.

    """
    if ":" not in model_path:
        msg = "Model path must be in format 'module.path:ModelName' or 'script.py:ModelName'"
        raise ValueError(msg)

    module_part, model_name = model_path.rsplit(":", 1)

    if module_part.endswith(".py"):
        module_data = get_module_data_from_path(Path(module_part))
        sys.path.insert(0, str(module_data.extra_sys_path))
        module_name = module_data.module_import_str
    else:
        module_name = module_part

    try:
        module = importlib.import_module(module_name)
    except (ImportError, ValueError):
        logger.exception("Import error")
        logger.warning("Ensure all the package directories have an __init__.py file")
        raise

    if not hasattr(module, model_name):
        msg = f"Could not find model '{model_name}' in {module_name}"
        raise ValueError(msg)

    model = getattr(module, model_name)
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        msg = f"'{model_name}' in {module_name} is not a pydantic model class"
        raise TypeError(msg)

    logger.debug(f"Loaded model {model.__qualname__} from {module_name}")
    return model
