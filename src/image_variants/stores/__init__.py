"""Object store backends."""

from .s3 import S3ObjectStore

__all__ = ["S3ObjectStore"]
