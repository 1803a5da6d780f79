"""Object store blueprint, ACL models and core utilities.

Provider implementations inherit from :class:`ObjectStoreBlueprint`.
Import the models to type-hint your own code or to build custom stores.
"""

from .acl import (
    AccessControlPolicy,
    AclTarget,
    BucketTarget,
    Grant,
    Grantee,
    GranteeType,
    ObjectTarget,
    Permission,
    parse_permission,
    permission_from_name,
)
from .completion import Completion
from .object_store import CompletionCallback, ObjectStoreBlueprint, UploadOutcome
from .supported_providers import existing_cloud_providers


__all__ = [
    "AccessControlPolicy",
    "AclTarget",
    "BucketTarget",
    "Completion",
    "CompletionCallback",
    "Grant",
    "Grantee",
    "GranteeType",
    "ObjectStoreBlueprint",
    "ObjectTarget",
    "Permission",
    "UploadOutcome",
    "existing_cloud_providers",
    "parse_permission",
    "permission_from_name",
]
