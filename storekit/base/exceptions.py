"""
Storekit exception hierarchy.

Every error raised by Storekit inherits from :class:`StorekitError`.
Each class carries an ``exit_code`` so the CLI can map a failure to a
distinct process status without a lookup table of its own.
"""


# ── Base ──────────────────────────────────────────────────────────────
class StorekitError(Exception):
    """Root exception for all Storekit errors."""

    exit_code = 1


class RemoteError(StorekitError):
    """An error reported by the object store, with its code and message."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


# ── Storage (provider boundary) ──────────────────────────────────────
class StorageError(RemoteError):
    """Base exception for object store operations."""

    exit_code = 10


class BucketNotFoundError(StorageError):
    """Bucket not found."""


class ObjectNotFoundError(StorageError):
    """Object not found."""


class AccessDeniedError(StorageError):
    """Caller lacks permission for the operation."""


class PreconditionFailedError(StorageError):
    """A conditional write did not match the stored version."""


# ── Permissions ──────────────────────────────────────────────────────
class UnrecognizedPermissionError(StorekitError, ValueError):
    """Permission name is not one of the known ACL permissions."""

    exit_code = 2

    def __init__(self, name: str) -> None:
        super().__init__(f"Unrecognized permission: {name!r}")
        self.name = name


# ── Upload ───────────────────────────────────────────────────────────
class UploadError(StorekitError):
    """Base exception for asynchronous upload operations."""


class NoSuchFileError(UploadError):
    """The local file to upload does not exist."""

    exit_code = 3

    def __init__(self, path: str) -> None:
        super().__init__(f"NoSuchFile: The specified file does not exist: {path}")
        self.path = path


class UploadFailedError(UploadError, RemoteError):
    """The store reported a failed upload."""

    exit_code = 4


class AsyncTimeoutError(UploadError, TimeoutError):
    """No completion was delivered before the deadline."""

    exit_code = 5


class UploadCancelledError(UploadError):
    """The wait for a completion was cancelled."""

    exit_code = 6


# ── ACL ──────────────────────────────────────────────────────────────
class AclError(StorekitError):
    """Base exception for access-control policy updates."""


class AclFetchError(AclError, RemoteError):
    """Fetching the current policy failed; nothing was written."""

    exit_code = 7


class AclWriteError(AclError, RemoteError):
    """Writing the updated policy failed; the stored policy is unchanged."""

    exit_code = 8


class AclConflictError(AclWriteError):
    """The policy changed between fetch and write. Safe to retry."""

    exit_code = 9
