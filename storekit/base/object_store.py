"""Object store blueprint and upload outcome."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO, Callable

from pydantic import BaseModel, ConfigDict

from storekit.base.acl import AccessControlPolicy
from storekit.base.exceptions import UploadFailedError


class UploadOutcome(BaseModel):
    """Result of one asynchronous store-object call."""

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    success: bool
    code: str | None = None
    message: str | None = None

    @classmethod
    def succeeded(cls, correlation_id: str) -> UploadOutcome:
        return cls(correlation_id=correlation_id, success=True)

    @classmethod
    def failed(cls, correlation_id: str, code: str, message: str) -> UploadOutcome:
        return cls(correlation_id=correlation_id, success=False, code=code, message=message)

    def raise_for_status(self) -> None:
        """Raise :class:`UploadFailedError` if the upload failed."""
        if not self.success:
            raise UploadFailedError(self.code or "Unknown", self.message or "")


CompletionCallback = Callable[[UploadOutcome], None]


class ObjectStoreBlueprint(ABC):
    """Abstract interface to a remote object store.

    Implementations translate provider SDK errors into
    :class:`~storekit.base.exceptions.StorageError` subclasses that carry
    the provider's error code and message.
    """

    provider: str = ""

    # --- Objects ---

    @abstractmethod
    def store_object_async(
        self,
        bucket_name: str,
        object_name: str,
        payload: BinaryIO,
        correlation_id: str,
        on_complete: CompletionCallback,
    ) -> None:
        """Start storing *payload* and return without waiting.

        *on_complete* is invoked exactly once, from a thread owned by the
        store, with the outcome tagged by *correlation_id*. The caller
        must keep *payload* open and unmodified until then.

        Args:
            bucket_name: Target bucket.
            object_name: Destination object key.
            payload: Readable binary stream.
            correlation_id: Label echoed back in the outcome.
            on_complete: Completion handler.
        """
        pass

    # --- Access control ---

    @abstractmethod
    def get_bucket_acl(self, bucket_name: str) -> AccessControlPolicy:
        """Fetch the access-control policy of a bucket."""
        pass

    @abstractmethod
    def put_bucket_acl(self, bucket_name: str, policy: AccessControlPolicy) -> None:
        """Replace the access-control policy of a bucket."""
        pass

    @abstractmethod
    def get_object_acl(self, bucket_name: str, object_name: str) -> AccessControlPolicy:
        """Fetch the access-control policy of an object."""
        pass

    @abstractmethod
    def put_object_acl(
        self, bucket_name: str, object_name: str, policy: AccessControlPolicy
    ) -> None:
        """Replace the access-control policy of an object."""
        pass

    def close(self, wait: bool = True) -> None:
        """Release worker threads held by the store.

        Args:
            wait: Let queued uploads finish first. When ``False`` uploads
                that have not started are cancelled.
        """

    def __enter__(self) -> ObjectStoreBlueprint:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close(wait=exc_type is None)
