# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Course Store

Durable JSON document holding the timetable and assignment list.

The file is the single source of truth: it is re-read at the start of every
command and scheduler tick, and every mutation is written back immediately.
Writes go through a temp file + os.replace so a concurrent reader never sees
a half-written document.
"""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, TypeVar, Union

from .models import KuliahData

logger = logging.getLogger("kuliahbot.store")

T = TypeVar("T")


class StorageError(Exception):
    """Raised when the store cannot be read or written."""

    pass


def write_json_atomic(path: Path, payload: dict) -> None:
    """
    Write a JSON document atomically.

    The content is written to a sibling temp file, fsynced, then moved over
    the target with os.replace.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class KuliahStore:
    """
    File-backed store for the course document.

    Sync methods (load/save) do the raw I/O. Async callers should use
    read() and update(), which serialize access through one asyncio.Lock
    and bound each I/O call with a timeout.
    """

    def __init__(self, path: Union[str, Path], timeout: float = 5.0):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
            timeout: Seconds allowed for a single load or save
        """
        self.path = Path(path)
        self.timeout = timeout
        self._lock = asyncio.Lock()

    def load(self) -> KuliahData:
        """
        Return the persisted document, creating an empty one if missing.

        Raises:
            StorageError: If the file cannot be read, decoded, or created
        """
        if not self.path.exists():
            data = KuliahData()
            self.save(data)
            logger.info(f"Created empty course document at {self.path}")
            return data

        try:
            with open(self.path, encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in {self.path}: {e}") from e

        try:
            return KuliahData.from_dict(raw)
        except ValueError as e:
            raise StorageError(f"Malformed course document {self.path}: {e}") from e

    def save(self, data: KuliahData) -> None:
        """
        Persist the full document, replacing whatever was there.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            write_json_atomic(self.path, data.to_dict())
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    async def _run_io(self, func: Callable[..., T], *args) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StorageError(f"Store I/O on {self.path} timed out after {self.timeout}s") from e

    async def read(self) -> KuliahData:
        """Load the document without blocking the event loop."""
        async with self._lock:
            return await self._run_io(self.load)

    @asynccontextmanager
    async def update(self) -> AsyncIterator[KuliahData]:
        """
        Load-modify-save as one critical section.

        Usage:
            async with store.update() as data:
                data.add_assignment(...)

        The document is saved when the block exits normally. If the block
        raises, nothing is written.
        """
        async with self._lock:
            data = await self._run_io(self.load)
            yield data
            await self._run_io(self.save, data)

    async def drain(self) -> None:
        """Wait for any in-flight load/save to finish."""
        async with self._lock:
            logger.debug("Store drained")
