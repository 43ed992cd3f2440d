"""File storage orchestration: store originals, produce variants, remove.

FileStorageService ties together StorageService (bytes), PathBuilder (where),
VariantRegistry (which variants) and the processor chain (how). Batches run
files concurrently up to a limit; a per-file failure is reported in the
BatchResult while configuration errors abort the batch.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from file_storage.application.processors.base import ProcessorProtocol, StackProcessor
from file_storage.application.services.file_factory import FileFactory, PendingUpload
from file_storage.application.services.path_builder import PathBuilder, PathBuilderProtocol
from file_storage.application.services.storage_service import StorageService
from file_storage.application.services.url_builder import LocalUrlBuilder, UrlBuilderProtocol
from file_storage.domain.exceptions import (
    FileStorageException,
    ValidationException,
    VariantProcessingError,
)
from file_storage.domain.file import File
from file_storage.domain.variants import VariantRegistry
from file_storage.infrastructure.exceptions import CONFIGURATION_ERRORS
from file_storage.infrastructure.persistence.data_transformer import DataTransformer
from file_storage.shared.telemetry.logging import get_logger
from file_storage.shared.telemetry.tracing import traced

logger = get_logger(__name__)

Hook = Callable[[File], "File | None | Awaitable[File | None]"]


@dataclass
class ProcessingHooks:
    """Observer callbacks around storing and processing.

    A hook receives the file and may return a replacement File (or None to
    keep it). Hooks may be sync or async.
    """

    pre_store: list[Hook] = field(default_factory=list)
    post_store: list[Hook] = field(default_factory=list)
    pre_process: list[Hook] = field(default_factory=list)
    post_process: list[Hook] = field(default_factory=list)

    async def run(self, stage: str, file: File) -> File:
        for hook in getattr(self, stage):
            result = hook(file)
            if inspect.isawaitable(result):
                result = await result
            if isinstance(result, File):
                file = result
        return file


@dataclass(frozen=True)
class BatchFailure:
    file: File
    error: FileStorageException

    @property
    def variant(self) -> str | None:
        return self.error.variant if isinstance(self.error, VariantProcessingError) else None


@dataclass
class BatchResult:
    succeeded: list[File] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class FileStorageService:
    """Stores files and their variants through named adapters."""

    def __init__(
        self,
        storage: StorageService,
        path_builder: PathBuilderProtocol,
        processor: ProcessorProtocol | None = None,
        variant_registry: VariantRegistry | None = None,
        *,
        url_builder: UrlBuilderProtocol | None = None,
        hooks: ProcessingHooks | None = None,
        batch_concurrency: int = 4,
    ) -> None:
        self.storage = storage
        self.path_builder = path_builder
        self.processor = processor or StackProcessor()
        self.variant_registry = variant_registry or VariantRegistry()
        self.url_builder = url_builder
        self.hooks = hooks or ProcessingHooks()
        self.batch_concurrency = batch_concurrency

    @classmethod
    def from_settings(cls, settings: Any = None) -> FileStorageService:
        """Wire adapters, paths, variants and the image processor from settings."""
        from file_storage.application.processors.image.optimizer import PillowOptimizer
        from file_storage.application.processors.image.processor import ImageProcessor
        from file_storage.core.config import get_settings

        s = settings or get_settings()
        storage = StorageService.from_settings(s)
        path_builder = PathBuilder.from_settings(s)
        url_builder = (
            LocalUrlBuilder(s.storage_base_url, s.directory_separator)
            if s.storage_base_url
            else None
        )
        image = ImageProcessor(
            storage,
            path_builder,
            url_builder=url_builder,
            optimizer=PillowOptimizer(),
            quality=s.image_quality,
            mime_types=s.image_mime_types,
            temp_dir=s.temp_dir,
        )
        return cls(
            storage,
            path_builder,
            StackProcessor([image]),
            VariantRegistry.from_config(s.variants, s.variant_key_strategy),
            url_builder=url_builder,
            batch_concurrency=s.batch_concurrency,
        )

    @traced("file_storage.store")
    async def store(self, file: File) -> File:
        """Store the original, then declare and produce its variants.

        The in-flight resource is used as the processing source and is closed
        and dropped before returning, also on failure.

        Raises:
            ValidationException: File has no in-flight resource.
            StorageWriteError: Original could not be written.
            VariantProcessingError: A variant failed (carries the partial file).
        """
        file = await self.hooks.run("pre_store", file)
        resource = file.resource
        if resource is None:
            raise ValidationException("File has no resource to store", field="resource")
        try:
            if not file.path:
                file = file.build_path(self.path_builder)
            await self.storage.store(file.storage, file.path, resource)
            logger.debug("Stored original %s at %s:%s", file.uuid, file.storage, file.path)
            file = await self.hooks.run("post_store", file)
            file = self.variant_registry.declare_on(file)
            return await self._process(file, None)
        finally:
            if not resource.closed:
                resource.close()

    async def store_upload(
        self,
        upload: PendingUpload,
        *,
        storage: str,
        model: str | None = None,
        model_id: str | int | None = None,
        collection: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> File | None:
        """Store an upload; returns None when there is nothing to store."""
        reason = upload.skip_reason()
        if reason is not None:
            logger.info(
                "Skipping upload %s: %s (error code %s)",
                upload.client_filename,
                reason,
                upload.error_code,
            )
            return None
        file = FileFactory.from_uploaded_file(
            upload,
            storage,
            collection=collection,
            model=model,
            model_id=model_id,
            metadata=metadata,
        )
        return await self.store(file)

    async def store_record(self, record: Mapping[str, Any]) -> File:
        """Store the upload temp file a persistence record carries under "file".

        Raises:
            ValidationException: Record has no upload path.
        """
        upload_path = DataTransformer.upload_path(record)
        if upload_path is None:
            raise ValidationException("Record has no upload to store", field="file")
        return await self.store(DataTransformer.to_file(record).with_file(upload_path))

    @traced("file_storage.regenerate")
    async def regenerate_variants(
        self, file: File, variants: Sequence[str] | None = None
    ) -> File:
        """Re-declare variants from configuration and (re)produce them.

        Produced variants are overwritten at their deterministic paths.
        """
        file = self.variant_registry.declare_on(file)
        return await self._process(file, variants)

    async def _process(self, file: File, variants: Sequence[str] | None) -> File:
        file = await self.hooks.run("pre_process", file)
        try:
            file = await self.processor.process(file, variants)
        except VariantProcessingError as e:
            e.file = e.file.without_resource()
            raise
        file = file.without_resource()
        return await self.hooks.run("post_process", file)

    def url(self, file: File) -> str:
        """Public URL of the original; empty without a URL builder."""
        return self.url_builder.url(file) if self.url_builder is not None else ""

    def variant_url(self, file: File, name: str) -> str:
        return self.url_builder.url_for_variant(file, name) if self.url_builder is not None else ""

    @traced("file_storage.remove")
    async def remove(self, file: File) -> bool:
        """Remove the original and every produced variant.

        Returns True if the original was removed, False if it was already gone.
        """
        for name, record in file.variants.items():
            if record.path:
                await self.storage.remove(file.storage, record.path)
                logger.debug("Removed variant %s of %s", name, file.uuid)
        if not file.path:
            return False
        return await self.storage.remove(file.storage, file.path)

    async def process_batch(
        self, files: Iterable[File], variants: Sequence[str] | None = None
    ) -> BatchResult:
        """Store or regenerate many files concurrently.

        Files with an in-flight resource are stored; the others have their
        variants regenerated. Per-file errors land in BatchResult.failed.
        Configuration errors, and any error that is not a FileStorageException,
        are raised after the remaining files are cancelled.
        """
        result = BatchResult()
        semaphore = asyncio.Semaphore(self.batch_concurrency)

        async def _one(file: File) -> None:
            async with semaphore:
                try:
                    if file.resource is not None:
                        done = await self.store(file)
                    else:
                        done = await self.regenerate_variants(file, variants)
                except CONFIGURATION_ERRORS:
                    raise
                except VariantProcessingError as e:
                    logger.warning(
                        "Batch: file %s failed at variant %s: %s", file.uuid, e.variant, e.message
                    )
                    result.failed.append(BatchFailure(e.file, e))
                except FileStorageException as e:
                    logger.warning("Batch: file %s failed: %s", file.uuid, e.message)
                    result.failed.append(BatchFailure(file, e))
                else:
                    result.succeeded.append(done)

        tasks = [asyncio.create_task(_one(file)) for file in files]
        try:
            await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return result
