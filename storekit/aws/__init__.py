"""AWS provider implementation."""

from .object_store import ObjectStore

__all__ = ["ObjectStore"]
