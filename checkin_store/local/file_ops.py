"""
File operations for local persistence.

Provides async read/write helpers with:
- Atomic writes using temp file + rename, fsynced before the rename
- Line-by-line JSONL reading for memory efficiency
- OS errors translated to StorageIOError
"""

import json
import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary."""
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


async def _write_atomic(path: Path, payload: bytes, suffix: str) -> None:
    await ensure_directory(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(payload)
            await f.flush()
            os.fsync(f.fileno())

        await aiofiles.os.rename(temp_path, path)
    except Exception as e:
        try:
            await aiofiles.os.remove(temp_path)
        except OSError:
            pass
        raise StorageIOError("write", str(path), e) from e


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write a binary file atomically."""
    await _write_atomic(path, data, ".bin")


async def write_text_atomic(path: Path, text: str) -> None:
    """Write a UTF-8 text file atomically."""
    await _write_atomic(path, text.encode("utf-8"), ".tmp")


async def read_bytes(path: Path) -> bytes | None:
    """Read a binary file.

    Returns:
        File contents, or None if the file doesn't exist
    """
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageIOError("read", str(path), e) from e


async def iter_jsonl(path: Path) -> AsyncIterator[tuple[int, dict[str, Any]]]:
    """Iterate over lines in a JSONL file without loading all into memory.

    Yields:
        (line_number, parsed object) pairs; blank lines are skipped
    """
    try:
        if not await aiofiles.os.path.exists(path):
            return

        async with aiofiles.open(path, encoding="utf-8") as f:
            line_number = 0
            async for line in f:
                line_number += 1
                line = line.strip()
                if line:
                    yield line_number, json.loads(line)
    except json.JSONDecodeError as e:
        raise StorageIOError("parse_jsonl", str(path), e) from e
    except OSError as e:
        raise StorageIOError("read_jsonl", str(path), e) from e


async def append_jsonl(path: Path, data: dict[str, Any]) -> None:
    """Append a single JSON object to a JSONL file."""
    await ensure_directory(path.parent)

    try:
        async with aiofiles.open(path, "a", encoding="utf-8") as f:
            await f.write(json.dumps(data, default=_json_serializer) + "\n")
            await f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        raise StorageIOError("append_jsonl", str(path), e) from e


async def file_size(path: Path) -> int:
    """Size of a file in bytes, 0 if it doesn't exist."""
    try:
        stat = await aiofiles.os.stat(path)
        return stat.st_size
    except FileNotFoundError:
        return 0
    except OSError as e:
        raise StorageIOError("stat", str(path), e) from e


async def list_files(path: Path, suffix: str) -> list[Path]:
    """List regular files in a directory with the given suffix."""
    try:
        if not await aiofiles.os.path.exists(path):
            return []

        entries = await aiofiles.os.listdir(path)
        return sorted(path / e for e in entries if e.endswith(suffix) and not e.startswith("."))
    except OSError as e:
        raise StorageIOError("list_files", str(path), e) from e


async def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Returns:
        True if file was removed, False if it didn't exist
    """
    try:
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)
            return True
        return False
    except OSError as e:
        raise StorageIOError("remove", str(path), e) from e


async def remove_directory(path: Path) -> bool:
    """Remove a directory and all contents.

    Returns:
        True if removed, False if didn't exist
    """
    try:
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.wrap(shutil.rmtree)(path)
            return True
        return False
    except OSError as e:
        raise StorageIOError("remove_directory", str(path), e) from e


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for types not handled by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
