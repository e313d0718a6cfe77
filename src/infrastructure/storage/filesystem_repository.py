"""Service repository implementation backed by a directory of YAML files.

Each service is stored as <directory>/<name>.yaml. Blocking file I/O runs in
the default executor so the event loop is never blocked. Writes are
whole-file replacements: content goes to a hidden temp file in the same
directory and is then published with a single link/rename, so readers see
either the old or the new document, never a partial one.
"""

import asyncio
import copy
import functools
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

from src.domain.entities.service import Service, ServiceTier
from src.domain.entities.service_list import ServiceFilter, matches_search
from src.domain.exceptions import (
    ServiceAlreadyExistsError,
    ServiceNotFoundError,
    StorageError,
    VersionConflictError,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import record_skipped_file
from src.infrastructure.storage.service_yaml import decode_service, encode_service

logger = get_logger(__name__)

T = TypeVar("T")

SERVICE_FILE_SUFFIX = ".yaml"
DIRECTORY_MODE = 0o755
FILE_MODE = 0o644


@dataclass
class StorageInfo:
    """Summary of the storage backend, reported by the status endpoint."""

    provider: str
    location: str
    service_count: int
    last_modified: datetime | None = None


class FilesystemServiceRepository(ServiceRepositoryInterface):
    """Filesystem implementation of ServiceRepositoryInterface.

    Mutations are serialized within the process by an asyncio.Lock, which
    makes the read-check-write sequence of update() atomic for concurrent
    requests. Callers always receive copies of stored services.
    """

    def __init__(self, directory: str | Path):
        """Initialize the repository, creating the directory if needed.

        Args:
            directory: Catalog directory

        Raises:
            StorageError: If the directory cannot be created
        """
        self._directory = Path(directory)
        self._write_lock = asyncio.Lock()

        try:
            self._directory.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"failed to create services directory '{self._directory}': {e}"
            ) from e

    @property
    def directory(self) -> Path:
        return self._directory

    async def create(self, service: Service) -> Service:
        """Persist a new service with an exclusive publish.

        The temp file is hard-linked to the final path, which fails if the
        target already exists. Two concurrent creates of the same name
        therefore yield exactly one success.
        """
        name = service.metadata.name
        path = self._service_path(name)
        if path is None:
            raise StorageError(f"invalid service name '{name}'")

        async with self._write_lock:
            tmp_path = await self._write_temp_file(encode_service(service))
            try:
                os.link(tmp_path, path)
            except FileExistsError as e:
                raise ServiceAlreadyExistsError(name) from e
            except OSError as e:
                raise StorageError(f"failed to write service '{name}': {e}") from e
            finally:
                tmp_path.unlink(missing_ok=True)

        logger.info("service_stored", service_name=name, version=service.metadata.version)
        return copy.deepcopy(service)

    async def get_by_name(self, name: str) -> Service:
        path = self._service_path(name)
        if path is None:
            raise ServiceNotFoundError(name)

        content = await self._run(self._read_file, path, name)
        return decode_service(content, source=str(path))

    async def update(self, service: Service) -> Service:
        """Replace a stored service after an optimistic version check."""
        name = service.metadata.name

        async with self._write_lock:
            stored = await self.get_by_name(name)
            expected = service.metadata.version - 1
            if stored.metadata.version != expected:
                raise VersionConflictError(name, expected, stored.metadata.version)

            path = self._service_path(name)
            tmp_path = await self._write_temp_file(encode_service(service))
            try:
                os.replace(tmp_path, path)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                raise StorageError(f"failed to write service '{name}': {e}") from e

        logger.info("service_stored", service_name=name, version=service.metadata.version)
        return copy.deepcopy(service)

    async def delete(self, name: str) -> None:
        path = self._service_path(name)
        if path is None:
            raise ServiceNotFoundError(name)

        async with self._write_lock:
            await self._run(self._remove_file, path, name)

        logger.info("service_removed", service_name=name)

    async def list(self, filter: ServiceFilter | None = None) -> list[Service]:
        """List every decodable service, sorted by file name.

        Malformed files are skipped and reported as warnings. The filter is
        not pushed down; ServiceProcessor applies it.
        """
        return await self._run(self._load_all)

    async def exists(self, name: str) -> bool:
        path = self._service_path(name)
        if path is None:
            return False
        return await self._run(path.is_file)

    async def list_by_team(self, team: str) -> "list[Service]":
        team = team.lower()
        services = await self.list()
        return [s for s in services if s.spec.team.github_team.lower() == team]

    async def list_by_tier(self, tier: ServiceTier | str) -> "list[Service]":
        services = await self.list()
        return [s for s in services if s.metadata.tier == tier]

    async def search(self, query: str, limit: int = 0) -> "list[Service]":
        results = []
        for service in await self.list():
            if matches_search(service, query):
                results.append(service)
                if 0 < limit <= len(results):
                    break
        return results

    async def get_storage_info(self) -> StorageInfo:
        """Describe the backend: provider, location, count and last write."""
        return await self._run(self._collect_storage_info)

    def _service_path(self, name: str) -> Path | None:
        """Map a service name to its file, or None if the name could escape the directory."""
        if not name or name.startswith(".") or "/" in name or "\\" in name or ".." in name:
            return None
        return self._directory / f"{name}{SERVICE_FILE_SUFFIX}"

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    async def _write_temp_file(self, content: str) -> Path:
        """Write content to a temp file in the catalog directory.

        If the calling task is cancelled while the worker is still writing,
        the temp file is removed once the worker finishes and nothing is
        published.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._write_temp_file_sync, content)
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            future.add_done_callback(_discard_temp_file)
            logger.info("service_write_cancelled")
            raise

    def _write_temp_file_sync(self, content: str) -> Path:
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=".", suffix=".tmp", dir=self._directory
            )
        except OSError as e:
            raise StorageError(f"failed to create temp file: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, FILE_MODE)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"failed to write temp file: {e}") from e

        return tmp_path

    def _read_file(self, path: Path, name: str) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ServiceNotFoundError(name) from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"failed to read service '{name}': {e}") from e

    def _remove_file(self, path: Path, name: str) -> None:
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ServiceNotFoundError(name) from e
        except OSError as e:
            raise StorageError(f"failed to delete service '{name}': {e}") from e

    def _service_files(self) -> "list[Path]":
        try:
            entries = sorted(self._directory.iterdir())
        except OSError as e:
            raise StorageError(
                f"failed to read services directory '{self._directory}': {e}"
            ) from e

        return [
            entry
            for entry in entries
            if entry.suffix == SERVICE_FILE_SUFFIX
            and not entry.name.startswith(".")
            and entry.is_file()
        ]

    def _load_all(self) -> "list[Service]":
        services = []
        for path in self._service_files():
            name = path.name[: -len(SERVICE_FILE_SUFFIX)]
            try:
                services.append(decode_service(self._read_file(path, name), source=str(path)))
            except (StorageError, ServiceNotFoundError) as e:
                # Deleted between listing and reading, or malformed
                logger.warning("service_file_skipped", path=str(path), error=str(e))
                record_skipped_file()
        return services

    def _collect_storage_info(self) -> StorageInfo:
        files = self._service_files()
        last_modified = None
        if files:
            try:
                latest = max(path.stat().st_mtime for path in files)
            except OSError as e:
                raise StorageError(f"failed to stat service files: {e}") from e
            last_modified = datetime.fromtimestamp(latest, tz=timezone.utc)

        return StorageInfo(
            provider="filesystem",
            location=str(self._directory.resolve()),
            service_count=len(files),
            last_modified=last_modified,
        )


def _discard_temp_file(future: "asyncio.Future[Path]") -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().unlink(missing_ok=True)
