"""Credential storage contract and reference stores.

The session layer only needs four async operations on two named secrets.
Any key-value secure storage can back it as long as a completed ``set`` is
visible to every later ``get`` (read-after-write consistency).
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..constants import TOKEN_STORE_FILE
from ..logs.logger import logger


@runtime_checkable
class TokenStore(Protocol):
    """Async key-value store for the access and refresh tokens."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def remove_all(self, keys: Iterable[str]) -> None: ...


class InMemoryTokenStore:
    """Process-local token store guarded by an asyncio lock."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._values[key] = value

    async def remove(self, key: str) -> None:
        async with self._lock:
            self._values.pop(key, None)

    async def remove_all(self, keys: Iterable[str]) -> None:
        async with self._lock:
            for key in keys:
                self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the stored values (diagnostics and tests)."""
        return dict(self._values)


class FileTokenStore:
    """JSON file backed token store.

    Values are cached in memory and every mutation rewrites the whole file
    atomically (temp file + ``os.replace``). Blocking file I/O runs in the
    default executor so the event loop is never stalled.
    """

    def __init__(self, path: str | os.PathLike[str] = TOKEN_STORE_FILE) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._values: dict[str, str] | None = None

    async def get(self, key: str) -> str | None:
        async with self._lock:
            values = await self._load()
            return values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            values = await self._load()
            values[key] = value
            await self._persist(values)

    async def remove(self, key: str) -> None:
        await self.remove_all([key])

    async def remove_all(self, keys: Iterable[str]) -> None:
        async with self._lock:
            values = await self._load()
            changed = False
            for key in keys:
                if values.pop(key, None) is not None:
                    changed = True
            if changed:
                await self._persist(values)

    async def _load(self) -> dict[str, str]:
        if self._values is None:
            loop = asyncio.get_running_loop()
            self._values = await loop.run_in_executor(None, self._read_file)
        return self._values

    def _read_file(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.log_event(
                "store",
                "read_failed",
                level=logging.WARNING,
                path=str(self.path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    async def _persist(self, values: dict[str, str]) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_file, dict(values))

    def _write_file(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                temp_path = tmp.name
                json.dump(values, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            logger.log_event(
                "store",
                "write_failed",
                level=logging.ERROR,
                path=str(self.path),
                error_type=type(e).__name__,
            )
            raise


__all__ = ["TokenStore", "InMemoryTokenStore", "FileTokenStore"]
