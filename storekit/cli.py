"""Storekit CLI — uploads and ACL updates from the command line.

Usage examples::

    storekit --provider aws upload my-bucket report.zip ./report.zip --timeout 300
    storekit --provider aws get-acl my-bucket --key report.zip
    storekit --provider aws set-acl my-bucket --grantee-id 79a5... --permission READ

Every failure exits with the ``exit_code`` of the Storekit error raised.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from storekit.base.exceptions import StorekitError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``storekit`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="storekit",
        description="Asynchronous uploads and ACL updates for object stores",
    )
    parser.add_argument(
        "--provider", "-p",
        required=True,
        choices=["aws", "gcp"],
        help="Cloud provider",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="{}",
        help='JSON config string (e.g. \'{"region_name":"us-east-1"}\')',
    )
    parser.add_argument(
        "--region", "-r",
        default="",
        help="AWS region override; empty uses the client default",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a file asynchronously and wait for it")
    upload.add_argument("bucket")
    upload.add_argument("key")
    upload.add_argument("file")
    upload.add_argument(
        "--timeout", "-t",
        type=float,
        default=300.0,
        help="Seconds to wait for the upload to complete",
    )

    get_acl = sub.add_parser("get-acl", help="Print the ACL of a bucket or object")
    get_acl.add_argument("bucket")
    get_acl.add_argument("--key", "-k", help="Object key; omit for the bucket ACL")

    set_acl = sub.add_parser("set-acl", help="Add one grant to a bucket or object ACL")
    set_acl.add_argument("bucket")
    set_acl.add_argument("--key", "-k", help="Object key; omit for the bucket ACL")
    set_acl.add_argument("--grantee-id", required=True, help="Canonical user id")
    set_acl.add_argument(
        "--permission",
        required=True,
        help="FULL_CONTROL, WRITE, WRITE_ACP, READ or READ_ACP",
    )
    set_acl.add_argument(
        "--verify",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Re-read the ACL after writing (default: buckets only)",
    )
    return parser


def _fail(message: str, code: int = 1) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(code)


def _run(ns: argparse.Namespace, store: Any) -> None:
    from storekit.acl_merger import AclMerger
    from storekit.base.acl import BucketTarget, ObjectTarget
    from storekit.upload import AsyncUploadCoordinator

    if ns.command == "upload":
        outcome = AsyncUploadCoordinator(store).upload(
            ns.bucket, ns.key, ns.file, timeout=ns.timeout
        )
        outcome.raise_for_status()
        print("File upload completed")
        return

    target = ObjectTarget(bucket=ns.bucket, key=ns.key) if ns.key else BucketTarget(bucket=ns.bucket)

    if ns.command == "get-acl":
        policy = target.fetch_acl(store)
        print(json.dumps(policy.model_dump(mode="json"), indent=2))
        return

    result = AclMerger(store).apply_grant(
        target, ns.grantee_id, ns.permission, verify=ns.verify
    )
    print(json.dumps(result.written.model_dump(mode="json"), indent=2))
    if result.verified is not None:
        print(f"Updated ACL of {target.describe()}:")
        for grant in result.verified.grants:
            print(f"  Grantee Display Name: {grant.grantee.display_name}")
            print(f"  Permission: {grant.permission.value}")
    elif result.verify_error:
        print(f"Could not verify updated ACL: {result.verify_error}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses arguments, creates an object store via the factory and runs the
    requested command.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        config: dict[str, Any] = json.loads(ns.config)
    except json.JSONDecodeError as e:
        _fail(f"Invalid --config JSON: {e}")
    if ns.region and ns.provider == "aws":
        config["region_name"] = ns.region

    # Lazy-import to avoid loading the SDKs before arguments are valid
    from storekit.factory import create_object_store

    try:
        store = create_object_store(ns.provider, config)
    except ValueError as e:
        _fail(str(e))

    try:
        with store:
            _run(ns, store)
    except StorekitError as e:
        _fail(str(e), e.exit_code)
    except Exception as e:
        _fail(f"Operation failed: {type(e).__name__}: {e}")


if __name__ == "__main__":
    main()
