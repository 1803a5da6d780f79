"""Read / merge / write updates of bucket and object ACLs.

Each :meth:`AclMerger.apply_grant` call fetches the current policy,
derives a new one with one extra grant, and writes the whole policy
back. The write is the commit point: a failure before it leaves the
stored policy untouched, and verification after it never rolls back.

Concurrent merges on the same target are not serialized. Stores that
expose a policy version reject a stale write, which surfaces as
:class:`~storekit.base.exceptions.AclConflictError`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from storekit.base.acl import (
    AccessControlPolicy,
    AclTarget,
    BucketTarget,
    Grant,
    Grantee,
    GranteeType,
    Permission,
    parse_permission,
    permission_from_name,
)
from storekit.base.async_support import AsyncMixin
from storekit.base.exceptions import (
    AclConflictError,
    AclFetchError,
    AclWriteError,
    PreconditionFailedError,
    StorageError,
)
from storekit.base.logger import BoundLogger, sk_logger
from storekit.base.object_store import ObjectStoreBlueprint


def normalize_grant(grant: Grant) -> Grant:
    """Copy *grant* with the grantee type forced to ``CanonicalUser``.

    Some backends reject a policy written back with the grantee types they
    returned, so every carried-over grant is rewritten this way.
    """
    grantee = grant.grantee.model_copy(update={"type": GranteeType.CANONICAL_USER})
    return Grant(grantee=grantee, permission=grant.permission)


def merge_grant(
    policy: AccessControlPolicy, grantee_id: str, permission: Permission
) -> AccessControlPolicy:
    """Return *policy* with normalized grants plus one new grant at the end.

    Existing grants keep their order. A grant that duplicates an existing
    one is still appended.
    """
    new_grant = Grant(
        grantee=Grantee(id=grantee_id, type=GranteeType.CANONICAL_USER),
        permission=permission,
    )
    grants = tuple(normalize_grant(g) for g in policy.grants) + (new_grant,)
    return AccessControlPolicy(owner=policy.owner, grants=grants, version=policy.version)


class AclUpdateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: AclTarget
    written: AccessControlPolicy
    verified: AccessControlPolicy | None = None
    verify_error: str | None = None


class AclMerger(AsyncMixin):
    """Apply single-grant updates to ACLs held by an object store."""

    def __init__(self, store: ObjectStoreBlueprint, *, strict_permissions: bool = True) -> None:
        """
        Args:
            store: Store holding the policies.
            strict_permissions: Reject unknown permission names. When
                ``False`` they are written as ``NOT_SET`` instead.
        """
        self.store = store
        self.strict_permissions = strict_permissions

    def _log(self, target: AclTarget) -> BoundLogger:
        return sk_logger.bind(
            provider=self.store.provider or None,
            bucket=target.bucket,
            key=getattr(target, "key", None),
        )

    def apply_grant(
        self,
        target: AclTarget,
        grantee_id: str,
        permission: str,
        *,
        verify: bool | None = None,
    ) -> AclUpdateResult:
        """Grant *permission* to *grantee_id* on *target*.

        Args:
            target: Bucket or object whose policy is updated.
            grantee_id: Canonical user id receiving the permission.
            permission: Permission name, e.g. ``"READ"``.
            verify: Re-fetch the policy after writing. Defaults to ``True``
                for buckets and ``False`` for objects.

        Returns:
            The written policy and, when verified, the policy read back.

        Raises:
            UnrecognizedPermissionError: Unknown *permission* in strict mode.
                Raised before any remote call.
            AclFetchError: The current policy could not be read.
            AclConflictError: The policy changed since it was read.
            AclWriteError: The store rejected the new policy.
        """
        log = self._log(target)
        if self.strict_permissions:
            perm = parse_permission(permission)
        else:
            perm = permission_from_name(permission)
            if perm is Permission.NOT_SET:
                log.warning(
                    f"Unrecognized permission {permission!r} will be written as NOT_SET",
                    operation="apply_grant",
                )

        is_bucket = isinstance(target, BucketTarget)
        get_op = "get_bucket_acl" if is_bucket else "get_object_acl"
        put_op = "put_bucket_acl" if is_bucket else "put_object_acl"
        get_log = log.bind(operation=get_op)
        put_log = log.bind(operation=put_op)

        try:
            current = target.fetch_acl(self.store)
        except StorageError as e:
            get_log.error(f"Original {get_op} error: {e.code} - {e.message}", code=e.code)
            raise AclFetchError(e.code, e.message) from e

        updated = merge_grant(current, grantee_id, perm)

        try:
            target.write_acl(self.store, updated)
        except PreconditionFailedError as e:
            put_log.warning(
                f"Policy of {target.describe()} changed since it was read", code=e.code
            )
            raise AclConflictError(e.code, e.message) from e
        except StorageError as e:
            put_log.error(f"{put_op} error: {e.code} - {e.message}", code=e.code)
            raise AclWriteError(e.code, e.message) from e

        put_log.info(f"Granted {perm.value} to {grantee_id} on {target.describe()}")

        if verify is None:
            verify = is_bucket
        if not verify:
            return AclUpdateResult(target=target, written=updated)

        try:
            verified = target.fetch_acl(self.store)
        except StorageError as e:
            get_log.error(f"Updated {get_op} error: {e.code} - {e.message}", code=e.code)
            return AclUpdateResult(target=target, written=updated, verify_error=str(e))

        for grant in verified.grants:
            get_log.info(
                f"Grantee Display Name: {grant.grantee.display_name} "
                f"Permission: {grant.permission.value}"
            )
        return AclUpdateResult(target=target, written=updated, verified=verified)
