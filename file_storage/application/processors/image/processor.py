"""Image variant processor.

Per file: check applicability, copy the original to a scratch file, decode it
once, then for every selected variant apply its operations to a copy of the
decoded image, encode, optionally optimize, and store at the variant path.
The scratch file is removed whatever happens. A failing variant stops the
file; the error carries the file with every variant completed so far.
"""

from __future__ import annotations

import asyncio
import io
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from file_storage.application.processors.image.operations import ImageOperations, Operation
from file_storage.application.processors.image.optimizer import OptimizerProtocol
from file_storage.application.services.path_builder import PathBuilderProtocol
from file_storage.application.services.storage_service import StorageService
from file_storage.application.services.url_builder import UrlBuilderProtocol
from file_storage.core.config import DEFAULT_IMAGE_MIME_TYPES
from file_storage.domain.exceptions import (
    ImageDecodeError,
    TempFileCreationError,
    VariantProcessingError,
)
from file_storage.domain.file import File, VariantRecord
from file_storage.infrastructure.exceptions import CONFIGURATION_ERRORS, StorageReadError
from file_storage.shared.telemetry.logging import get_logger
from file_storage.shared.telemetry.tracing import add_span_attributes, traced
from file_storage.shared.utils.temporary_file import TemporaryFile

logger = get_logger(__name__)

# Pillow format per file extension; anything else keeps the decoded format.
_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
}


class ImageProcessor:
    """Produces image variants with Pillow and stores them through StorageService."""

    def __init__(
        self,
        storage: StorageService,
        path_builder: PathBuilderProtocol,
        *,
        url_builder: UrlBuilderProtocol | None = None,
        optimizer: OptimizerProtocol | None = None,
        quality: int = 90,
        mime_types: Iterable[str] = DEFAULT_IMAGE_MIME_TYPES,
        temp_dir: str | None = None,
        operations: ImageOperations | None = None,
    ) -> None:
        self.storage = storage
        self.path_builder = path_builder
        self.url_builder = url_builder
        self.optimizer = optimizer
        self.quality = quality
        self.mime_types = frozenset(mime_types)
        self.temp_dir = temp_dir
        self.operations = operations or ImageOperations()

    def set_quality(self, quality: int) -> ImageProcessor:
        if not 1 <= quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got: {quality}")
        self.quality = quality
        return self

    def register_operation(self, name: str, operation: Operation) -> ImageProcessor:
        self.operations.register(name, operation)
        return self

    def applies_to(self, file: File) -> bool:
        return file.has_variants() and (file.mime_type or "") in self.mime_types

    @traced("image.process")
    async def process(self, file: File, variants: Sequence[str] | None = None) -> File:
        if not self.applies_to(file):
            return file
        add_span_attributes(file_id=file.uuid)
        scratch = await self._materialize(file)
        try:
            try:
                image, source_format = await asyncio.to_thread(self._decode, scratch)
            except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
                logger.warning("Cannot decode %s (%s): %s", file.filename, file.uuid, e)
                raise ImageDecodeError(file.filename, file.uuid, str(e)) from e
            try:
                for name, record in list(file.variants.items()):
                    if variants is not None and name not in variants:
                        continue
                    if not record.operations:
                        logger.debug("Variant %s of %s has no operations, skipped", name, file.uuid)
                        continue
                    file = await self._process_variant(file, image, source_format, name, record)
            finally:
                image.close()
        finally:
            scratch.unlink(missing_ok=True)
        return file

    async def _materialize(self, file: File) -> Path:
        """Copy the original bytes into a scratch file."""
        try:
            scratch = TemporaryFile.create(self.temp_dir, suffix=f".{file.extension or 'tmp'}")
        except OSError as e:
            raise TempFileCreationError(file.filename, file.uuid, str(e)) from e
        try:
            if file.resource is not None and not file.resource.closed:
                await asyncio.to_thread(self._copy_resource, file, scratch)
            else:
                data = await self.storage.read(file.storage, file.path)
                await asyncio.to_thread(scratch.write_bytes, data)
        except (OSError, StorageReadError) as e:
            scratch.unlink(missing_ok=True)
            raise TempFileCreationError(file.filename, file.uuid, str(e)) from e
        except BaseException:
            scratch.unlink(missing_ok=True)
            raise
        return scratch

    @staticmethod
    def _copy_resource(file: File, scratch: Path) -> None:
        resource = file.resource
        if resource.seekable():
            resource.seek(0)
        with open(scratch, "wb") as out:
            shutil.copyfileobj(resource, out)

    @staticmethod
    def _decode(scratch: Path) -> tuple[Image.Image, str | None]:
        with Image.open(scratch) as image:
            image.load()
            return image.copy(), image.format

    async def _process_variant(
        self,
        file: File,
        image: Image.Image,
        source_format: str | None,
        name: str,
        record: VariantRecord,
    ) -> File:
        try:
            path = self.path_builder.path_for_variant(file, name)
            fmt = _FORMATS.get((file.extension or "").lower()) or source_format or "PNG"
            data = await asyncio.to_thread(self._render, image, record, fmt)
            await self.storage.store(file.storage, path, data)
        except CONFIGURATION_ERRORS:
            raise
        except Exception as e:
            partial = file.with_variant(name, record.mark_failed())
            logger.warning("Variant %s of %s failed: %s", name, file.uuid, e)
            raise VariantProcessingError(partial, name, str(e)) from e
        file = file.with_variant_path(name, path)
        if self.url_builder is not None:
            file = file.with_variant_url(name, self.url_builder.url_for_variant(file, name))
        logger.debug("Stored variant %s of %s at %s", name, file.uuid, path)
        return file

    def _render(self, image: Image.Image, record: VariantRecord, fmt: str) -> bytes:
        working = self.operations.apply_all(image.copy(), record.operations)
        if fmt == "JPEG" and working.mode not in ("RGB", "L"):
            working = working.convert("RGB")
        buffer = io.BytesIO()
        params: dict[str, object] = {}
        if fmt in ("JPEG", "WEBP"):
            params["quality"] = self.quality
        working.save(buffer, format=fmt, **params)
        data = buffer.getvalue()
        if record.optimize and self.optimizer is not None:
            data = self.optimizer.optimize(data, fmt)
        return data
