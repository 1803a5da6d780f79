"""AWS S3 implementation of the object store blueprint."""

from __future__ import annotations

import threading
from typing import Any, BinaryIO, NoReturn

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from s3transfer.manager import TransferConfig, TransferManager
from s3transfer.subscribers import BaseSubscriber

from storekit.base.acl import (
    AccessControlPolicy,
    Grant,
    Grantee,
    GranteeType,
    permission_from_name,
)
from storekit.base.config import AWSConfig
from storekit.base.exceptions import (
    AccessDeniedError,
    BucketNotFoundError,
    ObjectNotFoundError,
    PreconditionFailedError,
    StorageError,
)
from storekit.base.object_store import (
    CompletionCallback,
    ObjectStoreBlueprint,
    UploadOutcome,
)

_ERROR_MAP = {
    "NoSuchBucket": BucketNotFoundError,
    "NoSuchKey": ObjectNotFoundError,
    "404": ObjectNotFoundError,
    "AccessDenied": AccessDeniedError,
    "PreconditionFailed": PreconditionFailedError,
}


def _handle_error(e: ClientError | BotoCoreError, message: str) -> NoReturn:
    """Raise a mapped exception or a generic StorageError.

    ``BotoCoreError`` covers failures that never reached S3 (no endpoint,
    no credentials); its class name becomes the code.
    """
    if isinstance(e, BotoCoreError):
        raise StorageError(type(e).__name__, f"{message} {e}".strip()) from e
    error = e.response.get("Error", {})
    code = error.get("Code", "Unknown")
    exc_class = _ERROR_MAP.get(code, StorageError)
    raise exc_class(code, f"{message} {error.get('Message', '')}".strip()) from e


# --- Wire format <-> models ---


def _grantee_from_wire(data: dict[str, Any]) -> Grantee:
    return Grantee(
        id=data.get("ID"),
        display_name=data.get("DisplayName"),
        type=GranteeType(data.get("Type", GranteeType.CANONICAL_USER.value)),
        email_address=data.get("EmailAddress"),
        uri=data.get("URI"),
    )


def _grantee_to_wire(grantee: Grantee) -> dict[str, Any]:
    wire = {
        "ID": grantee.id,
        "DisplayName": grantee.display_name,
        "Type": grantee.type.value,
        "EmailAddress": grantee.email_address,
        "URI": grantee.uri,
    }
    return {k: v for k, v in wire.items() if v is not None}


def _owner_to_wire(owner: Grantee) -> dict[str, Any]:
    wire = {"ID": owner.id, "DisplayName": owner.display_name}
    return {k: v for k, v in wire.items() if v is not None}


def policy_from_response(response: dict[str, Any]) -> AccessControlPolicy:
    """Build a policy from a ``get_bucket_acl`` / ``get_object_acl`` response."""
    owner = response.get("Owner")
    return AccessControlPolicy(
        owner=_grantee_from_wire(owner) if owner else None,
        grants=tuple(
            Grant(
                grantee=_grantee_from_wire(g.get("Grantee", {})),
                permission=permission_from_name(g.get("Permission", "")),
            )
            for g in response.get("Grants", [])
        ),
    )


def policy_to_request(policy: AccessControlPolicy) -> dict[str, Any]:
    """Render a policy as the ``AccessControlPolicy`` request parameter."""
    body: dict[str, Any] = {
        "Grants": [
            {"Grantee": _grantee_to_wire(g.grantee), "Permission": g.permission.value}
            for g in policy.grants
        ]
    }
    if policy.owner is not None:
        body["Owner"] = _owner_to_wire(policy.owner)
    return body


class _CompletionSubscriber(BaseSubscriber):
    """Turns a finished transfer future into an :class:`UploadOutcome`."""

    def __init__(self, correlation_id: str, on_complete: CompletionCallback) -> None:
        self._correlation_id = correlation_id
        self._on_complete = on_complete

    def on_done(self, future, **kwargs):
        try:
            future.result()
        except ClientError as e:
            error = e.response.get("Error", {})
            outcome = UploadOutcome.failed(
                self._correlation_id,
                error.get("Code", "Unknown"),
                error.get("Message", str(e)),
            )
        except Exception as e:
            outcome = UploadOutcome.failed(self._correlation_id, type(e).__name__, str(e))
        else:
            outcome = UploadOutcome.succeeded(self._correlation_id)
        self._on_complete(outcome)


class ObjectStore(ObjectStoreBlueprint):
    """AWS S3 object store.

    Attributes:
        client: boto3 S3 client for interacting with the AWS S3 API.
        region: AWS region name, ``None`` for the client default.
    """

    provider = "aws"

    def __init__(self, config: AWSConfig) -> None:
        """Initialize the AWS S3 client.

        Args:
            config: AWS configuration object containing credentials, region,
                an optional endpoint and upload concurrency.
        """
        self.client = boto3.client(
            "s3",
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            region_name=config.region_name,
            endpoint_url=config.endpoint_url,
        )
        self.region = config.region_name
        self._transfer_config = TransferConfig(max_request_concurrency=config.max_concurrency)
        self._transfer_manager: TransferManager | None = None
        self._lock = threading.Lock()

    def _manager(self) -> TransferManager:
        with self._lock:
            if self._transfer_manager is None:
                self._transfer_manager = TransferManager(self.client, self._transfer_config)
            return self._transfer_manager

    # --- Objects ---

    def store_object_async(
        self,
        bucket_name: str,
        object_name: str,
        payload: BinaryIO,
        correlation_id: str,
        on_complete: CompletionCallback,
    ) -> None:
        """Queue an upload on the transfer manager's thread pool.

        The outcome is delivered from a transfer thread once the S3 call
        finishes. Errors raised by S3 are reported through the outcome,
        never raised here.
        """
        self._manager().upload(
            payload,
            bucket_name,
            object_name,
            subscribers=[_CompletionSubscriber(correlation_id, on_complete)],
        )

    # --- Access control ---

    def get_bucket_acl(self, bucket_name: str) -> AccessControlPolicy:
        """Fetch the ACL of an S3 bucket.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
            AccessDeniedError: If the caller may not read the ACL.
            StorageError: If the request fails for any other reason.
        """
        try:
            return policy_from_response(self.client.get_bucket_acl(Bucket=bucket_name))
        except (ClientError, BotoCoreError) as e:
            _handle_error(e, f"Failed to get ACL of bucket '{bucket_name}'.")

    def put_bucket_acl(self, bucket_name: str, policy: AccessControlPolicy) -> None:
        """Replace the ACL of an S3 bucket.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
            AccessDeniedError: If the caller may not write the ACL.
            StorageError: If S3 rejects the policy.
        """
        try:
            self.client.put_bucket_acl(
                Bucket=bucket_name, AccessControlPolicy=policy_to_request(policy)
            )
        except (ClientError, BotoCoreError) as e:
            _handle_error(e, f"Failed to put ACL of bucket '{bucket_name}'.")

    def get_object_acl(self, bucket_name: str, object_name: str) -> AccessControlPolicy:
        """Fetch the ACL of an S3 object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            BucketNotFoundError: If the bucket does not exist.
            StorageError: If the request fails for any other reason.
        """
        try:
            return policy_from_response(
                self.client.get_object_acl(Bucket=bucket_name, Key=object_name)
            )
        except (ClientError, BotoCoreError) as e:
            _handle_error(
                e, f"Failed to get ACL of '{object_name}' in '{bucket_name}'."
            )

    def put_object_acl(
        self, bucket_name: str, object_name: str, policy: AccessControlPolicy
    ) -> None:
        """Replace the ACL of an S3 object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If S3 rejects the policy.
        """
        try:
            self.client.put_object_acl(
                Bucket=bucket_name,
                Key=object_name,
                AccessControlPolicy=policy_to_request(policy),
            )
        except (ClientError, BotoCoreError) as e:
            _handle_error(
                e, f"Failed to put ACL of '{object_name}' in '{bucket_name}'."
            )

    def close(self, wait: bool = True) -> None:
        """Stop the transfer threads, cancelling unfinished uploads unless *wait*."""
        with self._lock:
            manager, self._transfer_manager = self._transfer_manager, None
        if manager is not None:
            manager.shutdown(cancel=not wait)
