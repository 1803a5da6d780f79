"""Object store factory.

Provides :func:`create_object_store`, the single entry-point for creating
an object store client. The provider name selects the implementation and
the pydantic model that validates ``config``.
"""

from typing import Any

from storekit.base import ObjectStoreBlueprint, existing_cloud_providers
from storekit.base.config import validate_config


def _load_registry() -> dict[str, type]:
    # Provider modules import their SDKs; load them only when a store is built.
    from storekit.aws.object_store import ObjectStore as AWSObjectStore
    from storekit.gcp.object_store import ObjectStore as GCPObjectStore

    return {
        "aws": AWSObjectStore,
        "gcp": GCPObjectStore,
    }


def create_object_store(
    cloud_provider: existing_cloud_providers,
    config: dict[str, Any],
) -> ObjectStoreBlueprint:
    """
    Create an object store client for a cloud provider.
    Args:
        cloud_provider: The cloud provider (e.g. 'aws', 'gcp').
        config: Configuration dictionary validated by the provider's config model.
    Returns:
        An :class:`ObjectStoreBlueprint` implementation.
    Raises:
        ValueError: If the cloud provider is not supported.
        pydantic.ValidationError: If the config is invalid.
    """
    registry = _load_registry()
    if cloud_provider not in registry:
        raise ValueError(f"Unsupported cloud provider: {cloud_provider}")

    store_class = registry[cloud_provider]
    config_obj = validate_config(cloud_provider, config)
    return store_class(config_obj)
