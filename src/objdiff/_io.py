from __future__ import annotations

import dataclasses
import json
import logging
import tomllib
from collections.abc import Mapping, Set
from datetime import date, time
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._models import LeafDifference

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """A document could not be read or written."""


def load_document(input_path: Path | str) -> Any:
    """Load a TOML or JSON document, chosen by the file suffix.

    Args:
        input_path: Path to a ``.toml`` or ``.json`` file.

    Returns:
        The parsed document.

    Raises:
        DocumentError: If the file cannot be read, has an unknown suffix or is malformed.

    """
    input_path = Path(input_path)
    suffix = input_path.suffix.lower()

    try:
        if suffix == ".toml":
            with input_path.open("rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with input_path.open("rb") as f:
                data = json.load(f)
        else:
            msg = f"Unsupported document format '{input_path.suffix}' for {input_path}. Expected .toml or .json"
            raise DocumentError(msg)
    except OSError as e:
        msg = f"Cannot read {input_path}: {e}"
        raise DocumentError(msg) from e
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        msg = f"Invalid document {input_path}: {e}"
        raise DocumentError(msg) from e

    logger.debug(f"Loaded document from {input_path}")
    return data


def load_model_document[M: BaseModel](input_path: Path | str, model: type[M]) -> M:
    """Load a TOML or JSON document and validate it into a pydantic model.

    Raises:
        DocumentError: If the document cannot be loaded.
        pydantic.ValidationError: If the document does not match the model.

    """
    data = load_document(input_path)
    return model.model_validate(data)


def _serialize_value(value: Any, *, drop_none: bool) -> Any:
    """Recursively serialize a value for export, handling special types.

    Handles:
    - Pydantic BaseModel: Converts to dict via model_dump()
    - dataclass instances: Converts to dict via dataclasses.asdict()
    - Mapping: Stringifies keys and recursively serializes values, optionally excluding None
    - list/tuple/set: Recursively serializes items, optionally excluding None
    - Enum, Path: Converts to their value / string
    - Primitives and TOML-native types: Returns as-is
    - Anything else: Converts to its string representation
    """
    if isinstance(value, BaseModel):
        return _serialize_value(value.model_dump(mode="python"), drop_none=drop_none)

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize_value(dataclasses.asdict(value), drop_none=drop_none)

    if isinstance(value, Mapping):
        return {
            str(k): _serialize_value(v, drop_none=drop_none)
            for k, v in value.items()
            if not (drop_none and v is None)
        }

    if isinstance(value, (list, tuple, Set)):
        return [_serialize_value(item, drop_none=drop_none) for item in value if not (drop_none and item is None)]

    if isinstance(value, Enum):
        return _serialize_value(value.value, drop_none=drop_none)

    if isinstance(value, Path):
        return str(value)

    if value is None or isinstance(value, (bool, int, float, str, date, time)):
        return value

    return str(value)


def differences_to_dict(differences: Iterable[LeafDifference], *, drop_none: bool = False) -> dict[str, Any]:
    """Convert differences to a dictionary suitable for TOML or JSON export.

    This is a pure function. With ``drop_none=True`` absent values are left out
    of each entry, since TOML has no null.

    Returns:
        A dictionary of the form ``{"differences": [{"path": ..., "old_value": ..., "new_value": ...}, ...]}``.

    """
    return {
        "differences": [_serialize_value(diff.to_dict(), drop_none=drop_none) for diff in differences],
    }


def export_differences(differences: Iterable[LeafDifference], output_path: Path | str) -> None:
    """Write differences to a ``.toml`` file, or JSON for any other suffix."""
    output_path = Path(output_path)

    # Serialize fully before touching the file
    if output_path.suffix.lower() == ".toml":
        content = tomli_w.dumps(differences_to_dict(differences, drop_none=True))
    else:
        content = json.dumps(differences_to_dict(differences), indent=2, default=str) + "\n"
    output_path.write_text(content, encoding="utf-8")

    logger.debug(f"Exported differences to {output_path}")
