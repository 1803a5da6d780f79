import threading

import pytest

from storekit.base.acl import AccessControlPolicy, Grant, Grantee, GranteeType, Permission
from storekit.base.exceptions import BucketNotFoundError, PreconditionFailedError
from storekit.base.object_store import ObjectStoreBlueprint, UploadOutcome


class InMemoryObjectStore(ObjectStoreBlueprint):
    """Object store held in dicts. Uploads complete on their own thread.

    ``get_side_effects`` / ``put_side_effects`` are consumed one per call;
    an exception entry is raised, ``None`` lets the call through.
    """

    provider = "memory"

    def __init__(self, versioned: bool = False) -> None:
        self.versioned = versioned
        self.objects: dict[tuple[str, str], bytes] = {}
        self.acls: dict[tuple[str, str | None], AccessControlPolicy] = {}
        self.calls: list[tuple] = []
        self.get_side_effects: list = []
        self.put_side_effects: list = []
        self.upload_error: tuple[str, str] | None = None
        self.release_uploads = threading.Event()
        self.release_uploads.set()
        self._threads: list[threading.Thread] = []

    def store_object_async(self, bucket_name, object_name, payload, correlation_id, on_complete):
        self.calls.append(("store_object_async", bucket_name, object_name))

        def run():
            self.release_uploads.wait()
            if self.upload_error:
                on_complete(UploadOutcome.failed(correlation_id, *self.upload_error))
                return
            self.objects[(bucket_name, object_name)] = payload.read()
            on_complete(UploadOutcome.succeeded(correlation_id))

        thread = threading.Thread(target=run, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _get(self, bucket_name, object_name):
        self.calls.append(("get_acl", bucket_name, object_name))
        if self.get_side_effects:
            effect = self.get_side_effects.pop(0)
            if effect is not None:
                raise effect
        try:
            return self.acls[(bucket_name, object_name)]
        except KeyError:
            raise BucketNotFoundError("NoSuchBucket", f"No policy for {bucket_name}") from None

    def _put(self, bucket_name, object_name, policy):
        self.calls.append(("put_acl", bucket_name, object_name))
        if self.put_side_effects:
            effect = self.put_side_effects.pop(0)
            if effect is not None:
                raise effect
        current = self.acls.get((bucket_name, object_name))
        if self.versioned:
            if current is not None and policy.version != current.version:
                raise PreconditionFailedError("PreconditionFailed", "version mismatch")
            next_version = str(int(current.version or 0) + 1) if current else "1"
            policy = policy.model_copy(update={"version": next_version})
        self.acls[(bucket_name, object_name)] = policy

    def get_bucket_acl(self, bucket_name):
        return self._get(bucket_name, None)

    def put_bucket_acl(self, bucket_name, policy):
        self._put(bucket_name, None, policy)

    def get_object_acl(self, bucket_name, object_name):
        return self._get(bucket_name, object_name)

    def put_object_acl(self, bucket_name, object_name, policy):
        self._put(bucket_name, object_name, policy)

    def close(self, wait=True):
        if wait:
            for thread in self._threads:
                thread.join(timeout=5)

    def writes(self):
        return [c for c in self.calls if c[0] == "put_acl"]


OWNER = Grantee(id="owner-id", display_name="owner")


def group_read_policy(version=None):
    return AccessControlPolicy(
        owner=OWNER,
        grants=(
            Grant(
                grantee=Grantee(
                    id="g1",
                    display_name="readers",
                    type=GranteeType.GROUP,
                    uri="http://acs.amazonaws.com/groups/global/AllUsers",
                ),
                permission=Permission.READ,
            ),
        ),
        version=version,
    )


@pytest.fixture
def store():
    instance = InMemoryObjectStore()
    instance.acls[("bucket", None)] = group_read_policy()
    instance.acls[("bucket", "key")] = group_read_policy()
    yield instance
    instance.release_uploads.set()
    instance.close()


@pytest.fixture
def versioned_store():
    instance = InMemoryObjectStore(versioned=True)
    instance.acls[("bucket", None)] = group_read_policy(version="1")
    yield instance
    instance.close()


@pytest.fixture
def original_policy():
    return group_read_policy()
