"""Service catalog error taxonomy.

Every error carries a human-readable message. Cancellation is not part of this
hierarchy: cancelled operations propagate asyncio.CancelledError unchanged.
"""


class ServiceCatalogError(Exception):
    """Base exception for service catalog errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ServiceValidationError(ServiceCatalogError, ValueError):
    """A service descriptor violates an invariant."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class ServiceNotFoundError(ServiceCatalogError):
    """The requested service does not exist."""

    def __init__(self, name: str):
        super().__init__(f"service '{name}' not found")
        self.name = name


class ServiceAlreadyExistsError(ServiceCatalogError):
    """A service with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(f"service '{name}' already exists")
        self.name = name


class PermissionDeniedError(ServiceCatalogError):
    """The user does not own the target service."""

    pass


class VersionConflictError(ServiceCatalogError):
    """The stored revision is not the one the write was based on."""

    def __init__(self, name: str, expected: int, actual: int):
        super().__init__(
            f"service '{name}' was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class StorageError(ServiceCatalogError):
    """Reading, writing or listing service storage failed."""

    pass


class ServiceDecodeError(StorageError):
    """A stored service document is malformed."""

    pass


class CollaboratorUnavailableError(ServiceCatalogError):
    """A downstream collaborator (Kubernetes, GitHub, versioning) failed."""

    pass
