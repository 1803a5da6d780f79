"""Storekit — asynchronous uploads and ACL updates for S3 and Cloud Storage.

Create a store with :func:`create_object_store`, then drive it with
:class:`AsyncUploadCoordinator` or :class:`AclMerger`::

    from storekit import create_object_store, AclMerger, BucketTarget

    store = create_object_store("aws", {"region_name": "us-east-1"})
    AclMerger(store).apply_grant(BucketTarget(bucket="my-bucket"), "canonical-id", "READ")
"""

from .base import (
    AccessControlPolicy,
    BucketTarget,
    Grant,
    Grantee,
    GranteeType,
    ObjectStoreBlueprint,
    ObjectTarget,
    Permission,
    UploadOutcome,
    parse_permission,
    permission_from_name,
)
from .acl_merger import AclMerger, AclUpdateResult, merge_grant, normalize_grant
from .factory import create_object_store
from .upload import AsyncUploadCoordinator, PendingUpload

__all__ = [
    "AccessControlPolicy",
    "AclMerger",
    "AclUpdateResult",
    "AsyncUploadCoordinator",
    "BucketTarget",
    "Grant",
    "Grantee",
    "GranteeType",
    "ObjectStoreBlueprint",
    "ObjectTarget",
    "PendingUpload",
    "Permission",
    "UploadOutcome",
    "create_object_store",
    "merge_grant",
    "normalize_grant",
    "parse_permission",
    "permission_from_name",
]
