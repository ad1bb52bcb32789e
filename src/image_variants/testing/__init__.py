"""Testing utilities and fakes for image-variants."""

from .fakes import (
    FakeLogger,
    FakeObjectStore,
    StoredObject,
    create_source_image,
    create_test_image,
)

__all__ = [
    "FakeObjectStore",
    "FakeLogger",
    "StoredObject",
    "create_test_image",
    "create_source_image",
]
