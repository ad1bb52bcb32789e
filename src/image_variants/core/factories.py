"""Factory classes for creating configured service instances."""

from typing import Any, Optional

from .models import UploadConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, ObjectStoreBackend
from .services import (
    BatchCoordinator,
    ImageUploadService,
    ObjectStoreClient,
    VariantPipeline,
)
from ..stores.s3 import S3ObjectStore


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a configured logger instance."""
        return StructuredLogger(name, level=level)


class ObjectStoreFactory:
    """Factory for creating object store backends."""

    @staticmethod
    def create_s3_store(config: UploadConfig, **kwargs: Any) -> ObjectStoreBackend:
        """Create the aioboto3-backed S3 store."""
        return S3ObjectStore(config, **kwargs)


class UploadServiceFactory:
    """Factory for wiring the complete upload service."""

    @staticmethod
    def create_service(
        backend: Optional[ObjectStoreBackend] = None,
        config: Optional[UploadConfig] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> ImageUploadService:
        """Create a fully configured upload service.

        Without a backend the S3 store is built from ``config``; without a
        config one is read from the environment.
        """
        if config is None:
            config = UploadConfig.from_env()

        if backend is None:
            backend = ObjectStoreFactory.create_s3_store(config)

        if logger is None:
            logger = LoggerFactory.create_logger("image-variants")

        store = ObjectStoreClient(backend, logger, content_type=config.content_type)
        pipeline = VariantPipeline(
            store,
            config=config,
            logger=logger,
            metrics_collector=metrics_collector,
        )
        batch_coordinator = BatchCoordinator(pipeline, logger)

        return ImageUploadService(
            pipeline=pipeline,
            store=store,
            batch_coordinator=batch_coordinator,
            logger=logger,
        )
