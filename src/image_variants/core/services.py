"""Variant generation, upload and batch services."""

import asyncio
import io
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .exceptions import (
    BatchTooLargeError,
    DeleteError,
    DeleteFailedError,
    EmptyBatchError,
    MissingIdError,
    NoResultError,
    TransformError,
    UploadError,
    ValidationError,
    with_error_handling,
)
from .image_utils import cover_fit, encode_image, extract_image_info, load_image
from .models import (
    BatchResult,
    DeleteResult,
    OriginalFile,
    SizeSpec,
    SourceImage,
    StoredVariant,
    TransformedImage,
    UploadConfig,
    UploadMetadata,
    UploadOptions,
    UploadResult,
)
from .naming import PathNamer
from .observability import LogContext, MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, ObjectStoreBackend, TransformerProtocol
from .validation import ImageValidator


class PipelineState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    TRANSFORMING = "transforming"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.COMPLETED, PipelineState.FAILED})


@dataclass
class PipelineRun:
    """Mutable bookkeeping for one source image moving through the pipeline."""

    filename: str
    correlation_id: str = field(default_factory=lambda: f"run_{uuid.uuid4().hex[:12]}")
    state: PipelineState = PipelineState.RECEIVED
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.RECEIVED])
    start_time: float = field(default_factory=time.time)

    def advance(self, state: PipelineState) -> bool:
        """Move to ``state``; returns False if the run is already terminal."""
        if self.state in TERMINAL_STATES:
            return False
        self.state = state
        self.history.append(state)
        return True


def extract_metadata(options: UploadOptions, folder: str) -> UploadMetadata:
    """Build response metadata from caller options and the resolved folder."""
    return UploadMetadata(
        user_id=options.user_id,
        category=options.category,
        description=options.description,
        tags=list(options.tags),
        is_public=options.is_public,
        folder=folder,
    )


class VariantTransformer:
    """Cover-fit resize and re-encode, with no I/O."""

    def __init__(self, config: Optional[UploadConfig] = None):
        self._config = config or UploadConfig()

    @with_error_handling(TransformError, "Image transformation failed")
    def transform(self, source_bytes: bytes, size: SizeSpec) -> TransformedImage:
        image = load_image(source_bytes)
        resized = cover_fit(image, size.width, size.height)
        data = encode_image(resized, self._config.output_format, self._config.quality)

        # Report what was actually encoded rather than what was requested.
        info = extract_image_info(data)
        return TransformedImage(
            data=data,
            width=info["width"],
            height=info["height"],
            format=info["format"],
        )


class ObjectStoreClient:
    """Typed-error wrapper around an ObjectStoreBackend."""

    def __init__(
        self,
        backend: ObjectStoreBackend,
        logger: Optional[LoggerProtocol] = None,
        content_type: str = "image/webp",
    ):
        self._backend = backend
        self._logger = logger or StructuredLogger("image-variants.store")
        self._content_type = content_type

    async def upload(
        self,
        data: bytes,
        object_name: str,
        folder: str,
        content_type: Optional[str] = None,
    ) -> StoredVariant:
        """Stream ``data`` to the backend as ``{folder}/{object_name}``."""
        stream = io.BytesIO(data)
        try:
            descriptor = await self._backend.upload_stream(
                stream,
                folder,
                object_name,
                resource_type="image",
                content_type=content_type or self._content_type,
            )
        except Exception as exc:  # noqa: BLE001
            raise UploadError(f"Upload failed for {folder}/{object_name}: {exc}") from exc

        if not descriptor:
            raise NoResultError("Upload failed: No result returned from object store")

        return StoredVariant(
            url=descriptor.get("secure_url", ""),
            width=descriptor.get("width") or 0,
            height=descriptor.get("height") or 0,
            size=descriptor.get("bytes") or len(data),
            format=descriptor.get("format") or "",
            public_id=descriptor.get("public_id", ""),
        )

    async def delete(self, public_id: str) -> DeleteResult:
        if not public_id or not public_id.strip():
            raise MissingIdError("Public ID is required")

        try:
            response = await self._backend.destroy(public_id)
        except Exception as exc:  # noqa: BLE001
            raise DeleteError(f"Delete failed: {exc}") from exc

        result = (response or {}).get("result")
        if result != "ok":
            raise DeleteFailedError(
                f"Failed to delete image {public_id}: {result or 'no result'}"
            )
        return DeleteResult()


class VariantPipeline:
    """Validate one source image, then transform and upload every size concurrently."""

    def __init__(
        self,
        store: ObjectStoreClient,
        config: Optional[UploadConfig] = None,
        validator: Optional[ImageValidator] = None,
        transformer: Optional[TransformerProtocol] = None,
        namer: Optional[PathNamer] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config or UploadConfig()
        self._store = store
        self._validator = validator or ImageValidator(self._config)
        self._transformer = transformer or VariantTransformer(self._config)
        self._namer = namer or PathNamer()
        self._logger = logger or StructuredLogger("image-variants.pipeline")
        self._metrics_collector = metrics_collector
        self._executor: Optional[ThreadPoolExecutor] = None
        if self._config.transform_workers:
            self._executor = ThreadPoolExecutor(
                max_workers=self._config.transform_workers,
                thread_name_prefix="variant-transform",
            )

    @property
    def config(self) -> UploadConfig:
        return self._config

    def new_upload_slots(self) -> asyncio.Semaphore:
        """Semaphore bounding concurrent upload streams for one call."""
        return asyncio.Semaphore(self._config.max_concurrent_uploads)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    async def run(
        self,
        source: SourceImage,
        options: Optional[UploadOptions] = None,
        upload_slots: Optional[asyncio.Semaphore] = None,
    ) -> UploadResult:
        options = options or UploadOptions()
        upload_slots = upload_slots or self.new_upload_slots()
        run = PipelineRun(filename=source.filename)
        context = LogContext(
            correlation_id=run.correlation_id,
            operation="variant_pipeline",
            component="variant_pipeline",
        ).with_metadata(filename=source.filename)

        self._transition(run, PipelineState.VALIDATING, context)
        loop = asyncio.get_running_loop()
        try:
            # The integrity check decodes every pixel; keep it off the loop.
            await loop.run_in_executor(
                self._executor, self._validator.validate_source, source
            )
        except ValidationError as exc:
            self._transition(run, PipelineState.FAILED, context, error=exc.kind)
            self._logger.warning(f"Rejected upload: {exc}", context)
            raise

        folder = self._namer.resolve_folder(options)
        prefix = self._namer.resolve_prefix(options)

        self._transition(run, PipelineState.TRANSFORMING, context, folder=folder)
        outcomes = await asyncio.gather(
            *(
                self._run_branch(run, source.buffer, size, folder, prefix, upload_slots, context)  # type: ignore[arg-type]
                for size in self._config.sizes
            ),
            return_exceptions=True,
        )

        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            stored = [outcome for outcome in outcomes if isinstance(outcome, StoredVariant)]
            self._transition(run, PipelineState.FAILED, context, error=str(failures[0]))
            await self.discard(stored, context)
            raise failures[0]

        variants: Dict[str, StoredVariant] = {
            size.name: outcome  # type: ignore[misc]
            for size, outcome in zip(self._config.sizes, outcomes)
        }
        self._transition(
            run,
            PipelineState.COMPLETED,
            context,
            duration_ms=round((time.time() - run.start_time) * 1000, 1),
        )
        return UploadResult(
            original=OriginalFile(
                filename=source.filename,
                mimetype=source.mimetype,
                size=source.size,
            ),
            variants=variants,
            metadata=extract_metadata(options, folder),
        )

    async def _run_branch(
        self,
        run: PipelineRun,
        source_bytes: bytes,
        size: SizeSpec,
        folder: str,
        prefix: str,
        upload_slots: asyncio.Semaphore,
        context: LogContext,
    ) -> StoredVariant:
        branch_context = context.with_metadata(variant=size.name)
        tracker = (
            self._metrics_collector.track(
                "variant_branch", variant=size.name, filename=run.filename
            )
            if self._metrics_collector is not None
            else nullcontext()
        )

        try:
            with tracker:
                return await self._transform_and_upload(
                    run, source_bytes, size, folder, prefix, upload_slots, context
                )
        except Exception as exc:
            self._logger.error(f"Variant {size.name} failed: {exc}", branch_context)
            raise

    async def _transform_and_upload(
        self,
        run: PipelineRun,
        source_bytes: bytes,
        size: SizeSpec,
        folder: str,
        prefix: str,
        upload_slots: asyncio.Semaphore,
        context: LogContext,
    ) -> StoredVariant:
        branch_context = context.with_metadata(variant=size.name)
        loop = asyncio.get_running_loop()
        transformed = await loop.run_in_executor(
            self._executor, self._transformer.transform, source_bytes, size
        )
        self._logger.debug(
            f"Encoded {transformed.width}x{transformed.height} {transformed.format}",
            branch_context.with_operation("transform"),
            bytes=len(transformed.data),
        )

        object_name = self._namer.object_name(prefix, size.name)
        async with upload_slots:
            if run.state == PipelineState.TRANSFORMING:
                self._transition(run, PipelineState.UPLOADING, context)
            self._logger.debug(
                f"Uploading {folder}/{object_name}",
                branch_context.with_operation("upload"),
            )
            stored = await self._store.upload(
                transformed.data, object_name, folder, self._config.content_type
            )

        return stored.model_copy(
            update={
                "width": transformed.width,
                "height": transformed.height,
                "size": len(transformed.data),
                "format": transformed.format,
            }
        )

    async def discard(self, variants: Sequence[StoredVariant], context: LogContext) -> None:
        """Deal with variants uploaded for a result that will not be returned."""
        if not variants:
            return

        public_ids = [variant.public_id for variant in variants]
        if not self._config.cleanup_orphans:
            self._logger.warning(
                f"Leaving {len(variants)} orphaned variant(s) in object store",
                context,
                public_ids=public_ids,
            )
            return

        results = await asyncio.gather(
            *(self._store.delete(public_id) for public_id in public_ids),
            return_exceptions=True,
        )
        for public_id, result in zip(public_ids, results):
            if isinstance(result, BaseException):
                self._logger.warning(
                    f"Could not remove orphaned variant {public_id}: {result}", context
                )
            else:
                self._logger.debug(f"Removed orphaned variant {public_id}", context)

    def _transition(
        self,
        run: PipelineRun,
        state: PipelineState,
        context: LogContext,
        **metadata: Any,
    ) -> None:
        previous = run.state
        if run.advance(state):
            self._logger.info(
                f"Pipeline {previous.value} -> {state.value}",
                context.with_operation(state.value),
                **metadata,
            )


class BatchCoordinator:
    """Runs one VariantPipeline per source image and keeps input order."""

    def __init__(
        self,
        pipeline: VariantPipeline,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._pipeline = pipeline
        self._logger = logger or StructuredLogger("image-variants.batch")

    async def process_batch(
        self,
        sources: Iterable[SourceImage],
        options: Optional[UploadOptions] = None,
    ) -> BatchResult:
        sources = list(sources)
        max_batch_size = self._pipeline.config.max_batch_size

        if not sources:
            raise EmptyBatchError("No files uploaded")
        if len(sources) > max_batch_size:
            raise BatchTooLargeError(f"Maximum {max_batch_size} files allowed")

        context = LogContext(
            operation="process_batch", component="batch_coordinator"
        ).with_metadata(batch_size=len(sources))
        self._logger.info(f"Processing batch of {len(sources)} images", context)

        upload_slots = self._pipeline.new_upload_slots()
        outcomes = await asyncio.gather(
            *(self._pipeline.run(source, options, upload_slots) for source in sources),
            return_exceptions=True,
        )

        failures = [
            (index, outcome)
            for index, outcome in enumerate(outcomes)
            if isinstance(outcome, BaseException)
        ]
        if failures:
            index, error = failures[0]
            self._logger.error(
                f"Batch aborted: image {index} ({sources[index].filename}) failed: {error}",
                context,
                failed=len(failures),
            )
            completed = [outcome for outcome in outcomes if isinstance(outcome, UploadResult)]
            await self._pipeline.discard(
                [variant for result in completed for variant in result.variants.values()],
                context,
            )
            raise error

        self._logger.info(f"Batch of {len(sources)} images completed", context)
        return list(outcomes)  # type: ignore[arg-type]


class ImageUploadService:
    """Entry points used by the transport layer."""

    def __init__(
        self,
        pipeline: VariantPipeline,
        store: ObjectStoreClient,
        batch_coordinator: Optional[BatchCoordinator] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._pipeline = pipeline
        self._store = store
        self._logger = logger or StructuredLogger("image-variants.service")
        self._batch_coordinator = batch_coordinator or BatchCoordinator(
            pipeline, self._logger
        )

    async def process_single(
        self, file: SourceImage, options: Optional[UploadOptions] = None
    ) -> UploadResult:
        return await self._pipeline.run(file, options)

    async def process_batch(
        self,
        files: Iterable[SourceImage],
        options: Optional[UploadOptions] = None,
    ) -> BatchResult:
        return await self._batch_coordinator.process_batch(files, options)

    async def delete_asset(self, public_id: str) -> DeleteResult:
        context = LogContext(operation="delete_asset", component="upload_service")
        self._logger.info("Deleting asset", context, public_id=public_id)
        result = await self._store.delete(public_id)
        self._logger.info("Deleted asset", context, public_id=public_id)
        return result

    def close(self) -> None:
        self._pipeline.shutdown()
