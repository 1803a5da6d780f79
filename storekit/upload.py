"""Asynchronous single-object upload with a bounded wait.

:class:`AsyncUploadCoordinator` hands one store-object call to the
store's worker threads and returns a :class:`PendingUpload`. The store
calls :meth:`PendingUpload.complete` exactly once from its own thread;
the submitter blocks in :meth:`PendingUpload.wait` until then, or until
its deadline passes.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from storekit.base.async_support import async_wrap
from storekit.base.completion import Completion
from storekit.base.exceptions import NoSuchFileError
from storekit.base.logger import sk_logger
from storekit.base.object_store import ObjectStoreBlueprint, UploadOutcome


class PendingUpload:
    """An in-flight upload. Owns the payload stream until completion."""

    def __init__(
        self,
        bucket_name: str,
        object_name: str,
        payload: BinaryIO,
        provider: str = "",
    ) -> None:
        self.bucket_name = bucket_name
        self.object_name = object_name
        self.correlation_id = object_name
        self.provider = provider or None
        self._payload = payload
        self._completion: Completion[UploadOutcome] = Completion(label=f"upload of '{object_name}'")
        self.log = sk_logger.bind(
            provider=self.provider,
            operation="store_object_async",
            bucket=bucket_name,
            key=object_name,
            correlation_id=self.correlation_id,
        )

    def complete(self, outcome: UploadOutcome) -> None:
        """Completion handler. Called by the store from one of its threads."""
        log = self.log.bind(correlation_id=outcome.correlation_id)
        if outcome.success:
            log.info(f"Finished uploading {outcome.correlation_id}")
        else:
            log.error(f"ERROR: {outcome.code}: {outcome.message}", code=outcome.code)
        self._payload.close()
        if not self._completion.set_result(outcome):
            log.warning("Completion arrived after the upload was already resolved or cancelled")

    def done(self) -> bool:
        return self._completion.done()

    def cancel(self) -> bool:
        """Stop waiting for this upload.

        The remote call keeps running; its completion is still logged and
        still releases the payload, but no waiter receives it.
        """
        return self._completion.cancel()

    def wait(self, timeout: float | None) -> UploadOutcome:
        """Block until the store delivers the outcome.

        Args:
            timeout: Seconds to wait. Pass ``None`` only when an unbounded
                wait is really intended.

        Raises:
            AsyncTimeoutError: If no outcome arrives in time.
            UploadCancelledError: If :meth:`cancel` was called.
        """
        return self._completion.wait(timeout)

    await_outcome = async_wrap(wait)


class AsyncUploadCoordinator:
    """Submit uploads to an object store and wait for their completion.

    Example::

        coordinator = AsyncUploadCoordinator(store)
        outcome = coordinator.upload("my-bucket", "report.zip", "/tmp/report.zip", timeout=300)
        outcome.raise_for_status()
    """

    def __init__(self, store: ObjectStoreBlueprint) -> None:
        self.store = store

    def submit(self, bucket_name: str, object_name: str, file_path: str | Path) -> PendingUpload:
        """Start uploading *file_path* and return without waiting.

        Args:
            bucket_name: Target bucket.
            object_name: Destination key; also the upload's correlation id.
            file_path: Local file to upload.

        Returns:
            The in-flight upload.

        Raises:
            NoSuchFileError: If *file_path* is not an existing file. The
                store is not called.
        """
        path = Path(file_path)
        if not path.is_file():
            sk_logger.error(
                "ERROR: NoSuchFile: The specified file does not exist",
                provider=self.store.provider or None,
                operation="store_object_async",
                bucket=bucket_name,
                key=object_name,
            )
            raise NoSuchFileError(str(path))

        payload = path.open("rb")
        pending = PendingUpload(bucket_name, object_name, payload, self.store.provider)
        try:
            self.store.store_object_async(
                bucket_name, object_name, payload, pending.correlation_id, pending.complete
            )
        except BaseException:
            payload.close()
            raise
        pending.log.info("Waiting for file upload to complete...")
        return pending

    def upload(
        self,
        bucket_name: str,
        object_name: str,
        file_path: str | Path,
        *,
        timeout: float | None,
    ) -> UploadOutcome:
        """Submit an upload and wait for its outcome.

        A failed upload is returned, not raised; call
        :meth:`UploadOutcome.raise_for_status` to turn it into an error.

        Raises:
            NoSuchFileError: If *file_path* does not exist.
            AsyncTimeoutError: If no outcome arrives within *timeout*.
        """
        pending = self.submit(bucket_name, object_name, file_path)
        return pending.wait(timeout)
