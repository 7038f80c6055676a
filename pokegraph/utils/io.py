# -*- coding: utf-8 -*-
"""
JSON helpers for documents, mutation payloads and run reports

Consistent UTF-8 encoding everywhere. Values that are not JSON types are
converted with to_serializable() instead of failing the whole payload.

Examples:
    from pokegraph.utils.io import load_json, encode_payload, save_json

    data = load_json("data/api-data/data/api/v2/pokemon/1/index.json")
    payload = encode_payload(data)          # bytes for the store
    save_json(result.to_dict(), "logs/load_report.json")

"""
import json
import logging
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


def load_json(path: Union[str, Path]) -> Any:
    """
    Load a JSON file.

    Raises:
        FileNotFoundError: path does not exist
        json.JSONDecodeError: content is not valid JSON
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    logger.debug(f"Loaded {path} ({_size_str(path)})")
    return data


def save_json(data: Any, path: Union[str, Path], indent: int = 2) -> str:
    """Save data to a JSON file, creating parent directories. Returns the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=to_serializable)

    logger.info(f"Saved {path} ({_size_str(path)})")
    return str(path)


def encode_payload(data: Any) -> bytes:
    """Serialize a document tree to compact UTF-8 JSON bytes."""
    return json.dumps(
        data, ensure_ascii=False, separators=(',', ':'), default=to_serializable
    ).encode('utf-8')


def decode_payload(payload: Union[bytes, str]) -> Any:
    """Inverse of encode_payload()."""
    if isinstance(payload, bytes):
        payload = payload.decode('utf-8')
    return json.loads(payload)


def to_serializable(obj: Any) -> Any:
    """Convert non-JSON-serializable objects."""
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if hasattr(obj, 'isoformat'):  # date/datetime
        return obj.isoformat()
    if hasattr(obj, '__dict__'):
        return obj.__dict__
    return str(obj)


def _size_str(path: Path) -> str:
    """Human-readable file size."""
    size = path.stat().st_size
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
