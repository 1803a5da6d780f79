from unittest.mock import patch, MagicMock
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from storekit.aws.object_store import ObjectStore, policy_from_response, policy_to_request
from storekit.base.acl import AccessControlPolicy, Grant, Grantee, GranteeType, Permission
from storekit.base.config import AWSConfig
from storekit.base.exceptions import (
    AccessDeniedError,
    BucketNotFoundError,
    ObjectNotFoundError,
    StorageError,
)


def _client_error(code: str, message: str = "err") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "op")


ACL_RESPONSE = {
    "Owner": {"DisplayName": "owner", "ID": "owner-id"},
    "Grants": [
        {
            "Grantee": {"DisplayName": "owner", "ID": "owner-id", "Type": "CanonicalUser"},
            "Permission": "FULL_CONTROL",
        },
        {
            "Grantee": {
                "Type": "Group",
                "URI": "http://acs.amazonaws.com/groups/global/AllUsers",
            },
            "Permission": "READ",
        },
        {
            "Grantee": {"Type": "AmazonCustomerByEmail", "EmailAddress": "a@example.com"},
            "Permission": "SOMETHING_NEW",
        },
    ],
}


@pytest.fixture
def store():
    with patch("storekit.aws.object_store.boto3") as mock_boto, \
            patch("storekit.aws.object_store.TransferManager") as mock_manager_cls:
        mock_client = MagicMock()
        mock_boto.client.return_value = mock_client
        instance = ObjectStore(AWSConfig(
            aws_access_key_id="key",
            aws_secret_access_key="secret",
            region_name="ap-south-1",
            max_concurrency=4,
        ))
        yield instance, mock_client, mock_manager_cls


# --- Wire format ---


class TestPolicyFromResponse:
    def test_owner_and_grants(self):
        policy = policy_from_response(ACL_RESPONSE)
        assert policy.owner == Grantee(id="owner-id", display_name="owner")
        assert [g.permission for g in policy.grants] == [
            Permission.FULL_CONTROL,
            Permission.READ,
            Permission.NOT_SET,
        ]
        assert policy.grants[1].grantee.type is GranteeType.GROUP
        assert policy.grants[1].grantee.uri.endswith("AllUsers")
        assert policy.grants[2].grantee.type is GranteeType.EMAIL_ADDRESS
        assert policy.grants[2].grantee.email_address == "a@example.com"
        assert policy.version is None

    def test_empty(self):
        policy = policy_from_response({})
        assert policy.owner is None
        assert policy.grants == ()


class TestPolicyToRequest:
    def test_omits_missing_fields(self):
        policy = AccessControlPolicy(
            owner=Grantee(id="owner-id", display_name="owner"),
            grants=(Grant(grantee=Grantee(id="U2"), permission=Permission.WRITE),),
        )
        assert policy_to_request(policy) == {
            "Owner": {"ID": "owner-id", "DisplayName": "owner"},
            "Grants": [
                {"Grantee": {"ID": "U2", "Type": "CanonicalUser"}, "Permission": "WRITE"},
            ],
        }

    def test_no_owner(self):
        assert policy_to_request(AccessControlPolicy()) == {"Grants": []}


# --- ACL operations ---


class TestGetBucketAcl:
    def test_success(self, store):
        instance, client, _ = store
        client.get_bucket_acl.return_value = ACL_RESPONSE
        policy = instance.get_bucket_acl("bucket")
        client.get_bucket_acl.assert_called_once_with(Bucket="bucket")
        assert len(policy.grants) == 3

    def test_bucket_not_found(self, store):
        instance, client, _ = store
        client.get_bucket_acl.side_effect = _client_error("NoSuchBucket")
        with pytest.raises(BucketNotFoundError) as exc_info:
            instance.get_bucket_acl("missing")
        assert exc_info.value.code == "NoSuchBucket"

    def test_access_denied(self, store):
        instance, client, _ = store
        client.get_bucket_acl.side_effect = _client_error("AccessDenied", "Access Denied")
        with pytest.raises(AccessDeniedError) as exc_info:
            instance.get_bucket_acl("bucket")
        assert "Access Denied" in exc_info.value.message

    def test_unreachable_endpoint(self, store):
        instance, client, _ = store
        client.get_bucket_acl.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        with pytest.raises(StorageError) as exc_info:
            instance.get_bucket_acl("bucket")
        assert exc_info.value.code == "EndpointConnectionError"
        assert "https://s3" in exc_info.value.message


class TestPutBucketAcl:
    def test_success(self, store):
        instance, client, _ = store
        policy = AccessControlPolicy(
            owner=Grantee(id="o"),
            grants=(Grant(grantee=Grantee(id="U2"), permission=Permission.READ),),
        )
        instance.put_bucket_acl("bucket", policy)
        client.put_bucket_acl.assert_called_once_with(
            Bucket="bucket", AccessControlPolicy=policy_to_request(policy)
        )

    def test_generic_error(self, store):
        instance, client, _ = store
        client.put_bucket_acl.side_effect = _client_error("MalformedACLError")
        with pytest.raises(StorageError) as exc_info:
            instance.put_bucket_acl("bucket", AccessControlPolicy())
        assert exc_info.value.code == "MalformedACLError"


class TestObjectAcl:
    def test_get(self, store):
        instance, client, _ = store
        client.get_object_acl.return_value = ACL_RESPONSE
        instance.get_object_acl("bucket", "key")
        client.get_object_acl.assert_called_once_with(Bucket="bucket", Key="key")

    def test_get_not_found(self, store):
        instance, client, _ = store
        client.get_object_acl.side_effect = _client_error("NoSuchKey")
        with pytest.raises(ObjectNotFoundError):
            instance.get_object_acl("bucket", "missing")

    def test_put(self, store):
        instance, client, _ = store
        instance.put_object_acl("bucket", "key", AccessControlPolicy())
        client.put_object_acl.assert_called_once_with(
            Bucket="bucket", Key="key", AccessControlPolicy={"Grants": []}
        )

    def test_put_without_credentials(self, store):
        instance, client, _ = store
        client.put_object_acl.side_effect = NoCredentialsError()
        with pytest.raises(StorageError) as exc_info:
            instance.put_object_acl("bucket", "key", AccessControlPolicy())
        assert exc_info.value.code == "NoCredentialsError"


# --- Async upload ---


class TestStoreObjectAsync:
    def _subscriber(self, store):
        instance, _, manager_cls = store
        callback = MagicMock()
        payload = MagicMock()
        instance.store_object_async("bucket", "key", payload, "key", callback)
        manager = manager_cls.return_value
        call = manager.upload.call_args
        assert call.args == (payload, "bucket", "key")
        return call.kwargs["subscribers"][0], callback

    def test_manager_created_once(self, store):
        instance, client, manager_cls = store
        instance.store_object_async("bucket", "a", MagicMock(), "a", MagicMock())
        instance.store_object_async("bucket", "b", MagicMock(), "b", MagicMock())
        manager_cls.assert_called_once()
        assert manager_cls.call_args.args[0] is client

    def test_success_outcome(self, store):
        subscriber, callback = self._subscriber(store)
        future = MagicMock()
        subscriber.on_done(future=future)
        outcome = callback.call_args.args[0]
        assert outcome.success
        assert outcome.correlation_id == "key"

    def test_client_error_outcome(self, store):
        subscriber, callback = self._subscriber(store)
        future = MagicMock()
        future.result.side_effect = _client_error("NoSuchBucket", "The specified bucket does not exist")
        subscriber.on_done(future=future)
        outcome = callback.call_args.args[0]
        assert not outcome.success
        assert outcome.code == "NoSuchBucket"
        assert outcome.message == "The specified bucket does not exist"

    def test_other_error_outcome(self, store):
        subscriber, callback = self._subscriber(store)
        future = MagicMock()
        future.result.side_effect = ConnectionError("reset")
        subscriber.on_done(future=future)
        outcome = callback.call_args.args[0]
        assert outcome.code == "ConnectionError"

    def test_close_shuts_down_manager(self, store):
        instance, _, manager_cls = store
        instance.store_object_async("bucket", "a", MagicMock(), "a", MagicMock())
        instance.close(wait=False)
        manager_cls.return_value.shutdown.assert_called_once_with(cancel=True)

    def test_close_without_uploads(self, store):
        instance, _, manager_cls = store
        instance.close()
        manager_cls.return_value.shutdown.assert_not_called()
