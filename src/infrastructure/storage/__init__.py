"""Service storage adapters: YAML codec and filesystem repository."""

from src.infrastructure.storage.filesystem_repository import (
    FilesystemServiceRepository,
    StorageInfo,
)
from src.infrastructure.storage.service_yaml import decode_service, encode_service

__all__ = [
    "FilesystemServiceRepository",
    "StorageInfo",
    "encode_service",
    "decode_service",
]
