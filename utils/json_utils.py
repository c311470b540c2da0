"""Shared JSON utility functions.

JSON loading and saving used by the catalog, configuration and CLI layers.
Datetimes, enums and objects exposing ``to_dict()`` are serialized
transparently.
"""
import json
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Union


def to_jsonable(obj: Any) -> Any:
    """
    Convert engine objects into JSON-compatible values.

    Args:
        obj: Object that ``json`` cannot serialize natively

    Returns:
        A JSON-compatible representation

    Raises:
        TypeError: If the object type is not supported
    """
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(data: Any, indent: int = 2) -> str:
    """Serialize data to a JSON string."""
    return json.dumps(data, indent=indent, ensure_ascii=False, default=to_jsonable)


def load_json(file_path: Union[str, Path]) -> Any:
    """
    Load JSON from a file.

    Args:
        file_path: Path to the JSON file (string or Path object)

    Returns:
        Parsed JSON data

    Raises:
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If JSON is malformed or the file is empty
    """
    path = Path(file_path)

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
        if not content.strip():
            raise json.JSONDecodeError("File is empty", content, 0)
        return json.loads(content)


def save_json(
    data: Any,
    file_path: Union[str, Path],
    indent: int = 2
) -> None:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize to JSON
        file_path: Path to the output file
        indent: JSON indentation level (default: 2)

    Raises:
        TypeError: If data cannot be serialized to JSON
        OSError: If the file or its directory cannot be written
    """
    path = Path(file_path)

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    # Serialize before opening so a failure leaves no partial file
    json_content = dumps(data, indent=indent)

    with open(path, "w", encoding="utf-8") as f:
        f.write(json_content)
