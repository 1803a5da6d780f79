"""Access-control policy models.

A policy is an owner plus an ordered list of grants, each pairing a
grantee with one permission. Models are frozen; updates produce copies.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from storekit.base.exceptions import UnrecognizedPermissionError

if TYPE_CHECKING:
    from storekit.base.object_store import ObjectStoreBlueprint


class Permission(str, Enum):
    FULL_CONTROL = "FULL_CONTROL"
    WRITE = "WRITE"
    WRITE_ACP = "WRITE_ACP"
    READ = "READ"
    READ_ACP = "READ_ACP"
    NOT_SET = "NOT_SET"


class GranteeType(str, Enum):
    CANONICAL_USER = "CanonicalUser"
    GROUP = "Group"
    EMAIL_ADDRESS = "AmazonCustomerByEmail"


# Exact, case-sensitive names. NOT_SET is deliberately absent.
_PERMISSION_NAMES: dict[str, Permission] = {
    "FULL_CONTROL": Permission.FULL_CONTROL,
    "WRITE": Permission.WRITE,
    "READ": Permission.READ,
    "WRITE_ACP": Permission.WRITE_ACP,
    "READ_ACP": Permission.READ_ACP,
}


def permission_from_name(name: str) -> Permission:
    """Map a permission name to :class:`Permission`, degrading to ``NOT_SET``.

    Used when decoding provider responses, where an unknown value must not
    abort reading the rest of the policy.
    """
    return _PERMISSION_NAMES.get(name, Permission.NOT_SET)


def parse_permission(name: str) -> Permission:
    """Map a permission name to :class:`Permission`, rejecting unknown names.

    Raises:
        UnrecognizedPermissionError: If *name* is not an exact match.
    """
    try:
        return _PERMISSION_NAMES[name]
    except KeyError:
        raise UnrecognizedPermissionError(name) from None


class Grantee(BaseModel):
    """Who receives a permission.

    ``uri`` holds a group URI (S3) or the raw entity string for grantees
    that are not individual users (GCS ``allUsers``, ``group-...``).
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    display_name: str | None = None
    type: GranteeType = GranteeType.CANONICAL_USER
    email_address: str | None = None
    uri: str | None = None


class Grant(BaseModel):
    model_config = ConfigDict(frozen=True)

    grantee: Grantee
    permission: Permission


class AccessControlPolicy(BaseModel):
    """Owner and ordered grants of one bucket or object.

    ``version`` is an opaque token for conditional writes, set only by
    providers that expose one.
    """

    model_config = ConfigDict(frozen=True)

    owner: Grantee | None = None
    grants: tuple[Grant, ...] = ()
    version: str | None = None


class BucketTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str

    def fetch_acl(self, store: ObjectStoreBlueprint) -> AccessControlPolicy:
        return store.get_bucket_acl(self.bucket)

    def write_acl(self, store: ObjectStoreBlueprint, policy: AccessControlPolicy) -> None:
        store.put_bucket_acl(self.bucket, policy)

    def describe(self) -> str:
        return f"bucket '{self.bucket}'"


class ObjectTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str

    def fetch_acl(self, store: ObjectStoreBlueprint) -> AccessControlPolicy:
        return store.get_object_acl(self.bucket, self.key)

    def write_acl(self, store: ObjectStoreBlueprint, policy: AccessControlPolicy) -> None:
        store.put_object_acl(self.bucket, self.key, policy)

    def describe(self) -> str:
        return f"object '{self.key}' in bucket '{self.bucket}'"


AclTarget = BucketTarget | ObjectTarget
