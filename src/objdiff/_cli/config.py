"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from objdiff._engine import MismatchPolicy


class ConfigError(Exception):
    """Error in objdiff configuration."""


@dataclass(slots=True, frozen=True)
class ObjdiffConfig:
    """Configuration loaded from the ``[tool.objdiff]`` table of pyproject.toml.

    Unset values are None so that command line options can take precedence.
    """

    policy: MismatchPolicy | None = None
    ignore: tuple[str, ...] = ()
    max_depth: int | None = None
    model: str | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_policy(value: object) -> MismatchPolicy:
    if not isinstance(value, str):
        msg = "Invalid [tool.objdiff].policy: expected string"
        raise ConfigError(msg)
    try:
        return MismatchPolicy(value)
    except ValueError:
        allowed = ", ".join(f"'{p.value}'" for p in MismatchPolicy)
        msg = f"Invalid [tool.objdiff].policy '{value}'. Expected one of: {allowed}"
        raise ConfigError(msg) from None


def _parse_ignore(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        msg = "Invalid [tool.objdiff].ignore: expected array of strings"
        raise ConfigError(msg)
    items = cast("list[object]", value)
    if not all(isinstance(item, str) for item in items):
        msg = "Invalid [tool.objdiff].ignore: expected array of strings"
        raise ConfigError(msg)
    return tuple(cast("list[str]", items))


def _parse_max_depth(value: object) -> int:
    # bool is a subclass of int
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        msg = "Invalid [tool.objdiff].max_depth: expected non-negative integer"
        raise ConfigError(msg)
    return value


def _parse_model(value: object) -> str:
    if not isinstance(value, str) or ":" not in value:
        msg = (
            f"Invalid [tool.objdiff].model '{value}'. "
            "Expected format: 'module.path:ModelName'"
        )
        raise ConfigError(msg)
    return value


def load_config(pyproject_path: Path) -> ObjdiffConfig:
    """Load and validate [tool.objdiff] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed ObjdiffConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    # Extract [tool.objdiff] section
    tool_section = data.get("tool", {})
    objdiff_section = tool_section.get("objdiff", {})

    if not objdiff_section:
        # No [tool.objdiff] section - return empty config
        return ObjdiffConfig(project_root=project_root)

    unknown_keys = set(objdiff_section) - {"policy", "ignore", "max_depth", "model"}
    if unknown_keys:
        msg = f"Unknown keys in [tool.objdiff]: {', '.join(sorted(unknown_keys))}"
        raise ConfigError(msg)

    return ObjdiffConfig(
        policy=_parse_policy(objdiff_section["policy"]) if "policy" in objdiff_section else None,
        ignore=_parse_ignore(objdiff_section["ignore"]) if "ignore" in objdiff_section else (),
        max_depth=_parse_max_depth(objdiff_section["max_depth"]) if "max_depth" in objdiff_section else None,
        model=_parse_model(objdiff_section["model"]) if "model" in objdiff_section else None,
        project_root=project_root,
    )


def get_config() -> ObjdiffConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        ObjdiffConfig (may be empty if no pyproject.toml or no [tool.objdiff] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ObjdiffConfig()
    return load_config(pyproject_path)
