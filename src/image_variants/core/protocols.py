"""Protocol definitions for dependency injection and testability."""

from typing import Any, BinaryIO, Dict, Optional, Protocol

from .models import SizeSpec, TransformedImage


class ObjectStoreBackend(Protocol):
    """Remote storage that accepts a byte stream and returns a descriptor."""

    async def upload_stream(
        self,
        stream: BinaryIO,
        folder: str,
        object_name: str,
        resource_type: str = "image",
        content_type: str = "application/octet-stream",
    ) -> Optional[Dict[str, Any]]:
        """Store the stream and describe the stored object.

        The descriptor carries ``secure_url``, ``public_id``, ``width``,
        ``height``, ``format`` and ``bytes``.
        """
        ...

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        """Delete an object; ``{"result": "ok"}`` on success."""
        ...


class TransformerProtocol(Protocol):
    """Protocol for producing one variant from source bytes."""

    def transform(self, source_bytes: bytes, size: SizeSpec) -> TransformedImage:
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
