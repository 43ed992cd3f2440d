"""File value object and per-variant records.

A File describes one storable entity: identity, ownership tags, size and
mime metadata, free-form metadata, and the named variants derived from it.
File is immutable; every with_*/without_* method returns a new instance and
leaves the original untouched.
"""

from __future__ import annotations

import dataclasses
import uuid as uuid_lib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import IO, TYPE_CHECKING, Any

from file_storage.domain.exceptions import VariantNotFoundError
from file_storage.shared.utils.filename import split_filename

if TYPE_CHECKING:
    from file_storage.application.services.path_builder import PathBuilderProtocol


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class VariantRecord:
    """Declared operations of one variant plus where its output lives.

    path and url stay empty until the variant has been produced.
    """

    operations: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    path: str = ""
    url: str = ""
    optimize: bool = False
    failed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "operations",
            MappingProxyType(
                {name: _freeze(args) for name, args in (self.operations or {}).items()}
            ),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VariantRecord:
        return cls(
            operations=data.get("operations") or {},
            path=data.get("path") or "",
            url=data.get("url") or "",
            optimize=bool(data.get("optimize", False)),
            failed=bool(data.get("failed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict; `failed` only appears when set."""
        data: dict[str, Any] = {
            "operations": {name: dict(args) for name, args in self.operations.items()},
            "path": self.path,
            "url": self.url,
            "optimize": self.optimize,
        }
        if self.failed:
            data["failed"] = True
        return data

    def with_path(self, path: str) -> VariantRecord:
        return dataclasses.replace(self, path=path, failed=False)

    def with_url(self, url: str) -> VariantRecord:
        return dataclasses.replace(self, url=url)

    def mark_failed(self) -> VariantRecord:
        return dataclasses.replace(self, failed=True)

    @property
    def is_completed(self) -> bool:
        return bool(self.path) and not self.failed


@dataclass(frozen=True)
class File:
    """Immutable description of a storable file.

    resource is the byte stream while the file is in flight (upload to
    store); it is excluded from equality and cleared once stored.
    """

    uuid: str
    filename: str
    filesize: int
    storage: str
    mime_type: str | None = None
    model: str | None = None
    model_id: str | int | None = None
    collection: str | None = None
    path: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    variants: Mapping[str, VariantRecord] = field(default_factory=dict)
    resource: IO[bytes] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))
        variants = {
            name: record if isinstance(record, VariantRecord) else VariantRecord.from_dict(record)
            for name, record in (self.variants or {}).items()
        }
        object.__setattr__(self, "variants", MappingProxyType(variants))

    @classmethod
    def create(
        cls,
        filename: str,
        filesize: int,
        mime_type: str | None,
        storage: str,
        collection: str | None = None,
        model: str | None = None,
        model_id: str | int | None = None,
        metadata: Mapping[str, Any] | None = None,
        variants: Mapping[str, VariantRecord | Mapping[str, Any]] | None = None,
        resource: IO[bytes] | None = None,
    ) -> File:
        """Create a new file description with a freshly assigned uuid."""
        return cls(
            uuid=str(uuid_lib.uuid4()),
            filename=filename,
            filesize=filesize,
            mime_type=mime_type,
            storage=storage,
            collection=collection,
            model=model,
            model_id=model_id,
            metadata=metadata or {},
            variants=variants or {},
            resource=resource,
        )

    # Derived values

    @property
    def extension(self) -> str | None:
        _, ext = split_filename(self.filename)
        return ext

    def has_variants(self) -> bool:
        return bool(self.variants)

    def has_variant(self, name: str) -> bool:
        return name in self.variants

    def variant(self, name: str) -> VariantRecord:
        """Return the record of a declared variant.

        Raises:
            VariantNotFoundError: If the variant was never declared.
        """
        try:
            return self.variants[name]
        except KeyError:
            raise VariantNotFoundError(name, self.uuid) from None

    def variant_path(self, name: str) -> str:
        """Return the stored path of a produced variant.

        Raises:
            VariantNotFoundError: If the variant is undeclared or not produced.
        """
        record = self.variant(name)
        if not record.is_completed:
            raise VariantNotFoundError(name, self.uuid)
        return record.path

    def variant_url(self, name: str) -> str:
        return self.variant(name).url

    def pending_variants(self) -> list[str]:
        """Names of declared variants that have not been produced yet."""
        return [name for name, record in self.variants.items() if not record.is_completed]

    # Copy-on-write mutators

    def _replace(self, **changes: Any) -> File:
        return dataclasses.replace(self, **changes)

    def with_uuid(self, uuid: str) -> File:
        return self._replace(uuid=uuid)

    def with_filename(self, filename: str) -> File:
        return self._replace(filename=filename)

    def with_mime_type(self, mime_type: str | None) -> File:
        return self._replace(mime_type=mime_type)

    def with_storage(self, storage: str) -> File:
        return self._replace(storage=storage)

    def with_path(self, path: str) -> File:
        return self._replace(path=path)

    def build_path(self, path_builder: PathBuilderProtocol) -> File:
        """Assign the path computed by path_builder."""
        return self.with_path(path_builder.path(self))

    def belongs_to_model(self, model: str, model_id: str | int | None) -> File:
        return self._replace(model=model, model_id=model_id)

    def add_to_collection(self, collection: str) -> File:
        return self._replace(collection=collection)

    def with_resource(self, resource: IO[bytes]) -> File:
        return self._replace(resource=resource)

    def with_file(self, local_path: str) -> File:
        """Use a local file (e.g. an upload temp file) as the in-flight resource."""
        return self.with_resource(open(local_path, "rb"))  # noqa: SIM115

    def without_resource(self) -> File:
        return self._replace(resource=None)

    def with_metadata(self, metadata: Mapping[str, Any], overwrite: bool = True) -> File:
        """Replace the metadata map, or merge into it when overwrite is False."""
        if overwrite:
            return self._replace(metadata=metadata)
        return self._replace(metadata={**self.metadata, **metadata})

    def with_metadata_key(self, key: str, value: Any) -> File:
        return self._replace(metadata={**self.metadata, key: value})

    def without_metadata_key(self, key: str) -> File:
        return self._replace(metadata={k: v for k, v in self.metadata.items() if k != key})

    def without_metadata(self) -> File:
        return self._replace(metadata={})

    def with_variant(self, name: str, record: VariantRecord | Mapping[str, Any]) -> File:
        if not isinstance(record, VariantRecord):
            record = VariantRecord.from_dict(record)
        return self._replace(variants={**self.variants, name: record})

    def with_variants(
        self,
        variants: Mapping[str, VariantRecord | Mapping[str, Any]],
        merge: bool = True,
    ) -> File:
        """Set variants; merge=False drops variants not in the new mapping."""
        base = dict(self.variants) if merge else {}
        base.update(variants)
        return self._replace(variants=base)

    def without_variants(self, names: Iterable[str] | None = None) -> File:
        """Drop the named variants, or all of them when names is None."""
        if names is None:
            return self._replace(variants={})
        drop = set(names)
        return self._replace(
            variants={k: v for k, v in self.variants.items() if k not in drop}
        )

    def with_variant_path(self, name: str, path: str) -> File:
        return self.with_variant(name, self.variant(name).with_path(path))

    def with_variant_url(self, name: str, url: str) -> File:
        return self.with_variant(name, self.variant(name).with_url(url))

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "filename": self.filename,
            "filesize": self.filesize,
            "mime_type": self.mime_type,
            "extension": self.extension,
            "storage": self.storage,
            "model": self.model,
            "model_id": self.model_id,
            "collection": self.collection,
            "path": self.path,
            "metadata": dict(self.metadata),
            "variants": {name: record.to_dict() for name, record in self.variants.items()},
        }
