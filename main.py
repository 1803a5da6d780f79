from storekit import AclMerger, AsyncUploadCoordinator, BucketTarget, create_object_store



def main():
    # Example usage: upload a file, then grant read access on its bucket
    aws_config = {
        "aws_access_key_id": "AKIAEXAMPLE",
        "aws_secret_access_key": "wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY",
        "region_name": "",
    }

    with create_object_store("aws", aws_config) as store:
        outcome = AsyncUploadCoordinator(store).upload(
            "my-bucket", "report.zip", "report.zip", timeout=300
        )
        print(f"Upload: {outcome}")

        result = AclMerger(store).apply_grant(
            BucketTarget(bucket="my-bucket"), "AWS_USER_ID", "READ"
        )
        print(f"Written ACL: {result.written}")

if __name__ == "__main__":
    main()
