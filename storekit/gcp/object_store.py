"""GCP Cloud Storage implementation of the object store blueprint.

GCS expresses ACLs as ``{"entity": ..., "role": ...}`` entries. Roles map
onto the S3 permission names (``OWNER`` -> ``FULL_CONTROL``, ``WRITER`` ->
``WRITE``, ``READER`` -> ``READ``); entities map onto grantees. Policies
carry the resource metageneration as their version, and writes are
conditional on it.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, BinaryIO, NoReturn

from google.api_core.exceptions import Forbidden, NotFound, PreconditionFailed
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage as gcs
from google.cloud.exceptions import GoogleCloudError
from requests.exceptions import RequestException

from storekit.base.acl import AccessControlPolicy, Grant, Grantee, GranteeType, Permission
from storekit.base.config import GCPConfig
from storekit.base.exceptions import (
    AccessDeniedError,
    BucketNotFoundError,
    ObjectNotFoundError,
    PreconditionFailedError,
    StorageError,
)
from storekit.base.object_store import CompletionCallback, ObjectStoreBlueprint, UploadOutcome

_ROLE_TO_PERMISSION = {
    "OWNER": Permission.FULL_CONTROL,
    "WRITER": Permission.WRITE,
    "READER": Permission.READ,
}
_PERMISSION_TO_ROLE = {v: k for k, v in _ROLE_TO_PERMISSION.items()}

_GROUP_ENTITY_PREFIXES = ("group-", "domain-", "project-")
_GROUP_ENTITIES = ("allUsers", "allAuthenticatedUsers")

# API errors, credential failures and transport failures below the API layer
_SDK_ERRORS = (GoogleCloudError, GoogleAuthError, RequestException)


def _handle_error(
    e: Exception, message: str, *, not_found: type[StorageError] = BucketNotFoundError
) -> NoReturn:
    """Raise a mapped exception or a generic StorageError.

    *not_found* is raised for ``NotFound``; callers touching an object
    decide whether the bucket or the object is missing.
    """
    code = type(e).__name__
    detail = getattr(e, "message", None) or str(e)
    full = f"{message} {detail}".strip()
    if isinstance(e, NotFound):
        raise not_found(code, full) from e
    if isinstance(e, Forbidden):
        raise AccessDeniedError(code, full) from e
    if isinstance(e, PreconditionFailed):
        raise PreconditionFailedError(code, full) from e
    raise StorageError(code, full) from e


def grantee_from_entity(entity: str) -> Grantee:
    """Decode a GCS ACL entity string."""
    if entity in _GROUP_ENTITIES or entity.startswith(_GROUP_ENTITY_PREFIXES):
        return Grantee(type=GranteeType.GROUP, uri=entity)
    ident = entity[len("user-"):] if entity.startswith("user-") else entity
    if "@" in ident:
        return Grantee(type=GranteeType.EMAIL_ADDRESS, email_address=ident)
    return Grantee(id=ident)


def grantee_to_entity(grantee: Grantee) -> str:
    """Encode a grantee as a GCS ACL entity string."""
    if grantee.uri:
        return grantee.uri
    ident = grantee.id or grantee.email_address
    if not ident:
        raise StorageError("InvalidGrantee", "Grantee has neither an id nor an email address.")
    return f"user-{ident}"


def policy_from_acl(
    entries: Any, owner: dict[str, Any] | None, metageneration: Any
) -> AccessControlPolicy:
    """Build a policy from ACL entries, the resource owner and its metageneration."""
    grants = []
    for entry in entries:
        grantee = grantee_from_entity(entry["entity"])
        grants.append(
            Grant(
                grantee=grantee,
                permission=_ROLE_TO_PERMISSION.get(entry["role"], Permission.NOT_SET),
            )
        )
    owner_grantee = None
    if owner:
        owner_grantee = Grantee(id=owner.get("entityId") or owner.get("entity"))
    return AccessControlPolicy(
        owner=owner_grantee,
        grants=tuple(grants),
        version=str(metageneration) if metageneration is not None else None,
    )


def policy_to_acl(policy: AccessControlPolicy) -> list[dict[str, str]]:
    """Render a policy as a list of GCS ACL entries.

    Raises:
        StorageError: If a grant uses a permission GCS has no role for.
    """
    entries = []
    for grant in policy.grants:
        role = _PERMISSION_TO_ROLE.get(grant.permission)
        if role is None:
            raise StorageError(
                "UnsupportedPermission",
                f"Cloud Storage has no role for permission {grant.permission.value}.",
            )
        entries.append({"entity": grantee_to_entity(grant.grantee), "role": role})
    return entries


def _conditional(policy: AccessControlPolicy) -> dict[str, int]:
    if policy.version is None:
        return {}
    return {"if_metageneration_match": int(policy.version)}


class ObjectStore(ObjectStoreBlueprint):
    """GCP Cloud Storage object store."""

    provider = "gcp"

    def __init__(self, config: GCPConfig) -> None:
        """Initialize the GCP Cloud Storage client.

        Args:
            config: GCP configuration with project_id, optional credentials
                and upload concurrency.
        """
        self.client = gcs.Client(
            project=config.project_id,
            credentials=config.credentials,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_concurrency, thread_name_prefix="storekit-gcs"
        )

    def store_object_async(
        self,
        bucket_name: str,
        object_name: str,
        payload: BinaryIO,
        correlation_id: str,
        on_complete: CompletionCallback,
    ) -> None:
        """Run ``upload_from_file`` on the store's executor."""
        blob = self.client.bucket(bucket_name).blob(object_name)

        def _done(future: Future) -> None:
            exc = future.exception()
            if exc is None:
                outcome = UploadOutcome.succeeded(correlation_id)
            else:
                outcome = UploadOutcome.failed(
                    correlation_id,
                    type(exc).__name__,
                    getattr(exc, "message", None) or str(exc),
                )
            on_complete(outcome)

        future = self._executor.submit(blob.upload_from_file, payload)
        future.add_done_callback(_done)

    def _read_policy(self, resource: Any) -> AccessControlPolicy:
        # The full projection carries ACL, owner and metageneration in one
        # response, so the version always matches the entries read.
        resource.reload(projection="full")
        return policy_from_acl(
            resource._properties.get("acl", ()), resource.owner, resource.metageneration
        )

    def _missing(self, bucket_name: str) -> type[StorageError]:
        """Tell a missing object apart from a missing bucket after ``NotFound``."""
        try:
            exists = self.client.bucket(bucket_name).exists()
        except _SDK_ERRORS:
            exists = True
        return ObjectNotFoundError if exists else BucketNotFoundError

    def get_bucket_acl(self, bucket_name: str) -> AccessControlPolicy:
        """Fetch a bucket's ACL together with its owner and metageneration."""
        try:
            return self._read_policy(self.client.bucket(bucket_name))
        except _SDK_ERRORS as e:
            _handle_error(e, f"Failed to get ACL of bucket '{bucket_name}'.")

    def put_bucket_acl(self, bucket_name: str, policy: AccessControlPolicy) -> None:
        """Replace a bucket's ACL, conditional on the policy version if set."""
        entries = policy_to_acl(policy)
        try:
            bucket = self.client.bucket(bucket_name)
            bucket.acl.save(acl=entries, **_conditional(policy))
        except _SDK_ERRORS as e:
            _handle_error(e, f"Failed to put ACL of bucket '{bucket_name}'.")

    def get_object_acl(self, bucket_name: str, object_name: str) -> AccessControlPolicy:
        """Fetch an object's ACL together with its owner and metageneration."""
        message = f"Failed to get ACL of '{object_name}' in '{bucket_name}'."
        try:
            return self._read_policy(self.client.bucket(bucket_name).blob(object_name))
        except NotFound as e:
            _handle_error(e, message, not_found=self._missing(bucket_name))
        except _SDK_ERRORS as e:
            _handle_error(e, message)

    def put_object_acl(
        self, bucket_name: str, object_name: str, policy: AccessControlPolicy
    ) -> None:
        """Replace an object's ACL, conditional on the policy version if set."""
        entries = policy_to_acl(policy)
        message = f"Failed to put ACL of '{object_name}' in '{bucket_name}'."
        try:
            blob = self.client.bucket(bucket_name).blob(object_name)
            blob.acl.save(acl=entries, **_conditional(policy))
        except NotFound as e:
            _handle_error(e, message, not_found=self._missing(bucket_name))
        except _SDK_ERRORS as e:
            _handle_error(e, message)

    def close(self, wait: bool = True) -> None:
        """Stop the worker threads, dropping queued uploads unless *wait*."""
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
