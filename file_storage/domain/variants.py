"""Variant definitions: which derived files to produce and how.

ImageVariant is an immutable fluent builder; each operation method returns a
new variant. ImageVariantCollection groups the variants declared for one
(model, collection) pair, and VariantRegistry maps those pairs to their
collections so the processing pipeline gets its configuration explicitly.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

from file_storage.domain.exceptions import (
    InvalidOperationArgumentError,
    UnsupportedOperationError,
    ValidationException,
    VariantExistsError,
    VariantNotFoundError,
)
from file_storage.domain.file import File, VariantRecord

FLIP_HORIZONTAL = "h"
FLIP_VERTICAL = "v"

WILDCARD = "*"


@dataclass(frozen=True)
class ImageVariant:
    """One named variant: ordered operations with named arguments."""

    name: str
    operations: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    path: str = ""
    url: str = ""
    should_optimize: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationException("Variant name is required", field="name")
        object.__setattr__(self, "operations", MappingProxyType(dict(self.operations)))

    @classmethod
    def create(cls, name: str) -> ImageVariant:
        return cls(name=name)

    def _with_operation(self, operation: str, arguments: dict[str, Any]) -> ImageVariant:
        operations = dict(self.operations)
        operations[operation] = MappingProxyType(arguments)
        return dataclasses.replace(self, operations=operations)

    def with_operation(self, operation: str, **arguments: Any) -> ImageVariant:
        """Declare an operation that has no dedicated builder (custom operations)."""
        return self._with_operation(operation, dict(arguments))

    def optimize(self) -> ImageVariant:
        return dataclasses.replace(self, should_optimize=True)

    def with_path(self, path: str) -> ImageVariant:
        return dataclasses.replace(self, path=path)

    def with_url(self, url: str) -> ImageVariant:
        return dataclasses.replace(self, url=url)

    def resize(
        self,
        width: int | None = None,
        height: int | None = None,
        aspect_ratio: bool = True,
        prevent_upscale: bool = False,
    ) -> ImageVariant:
        return self._with_operation(
            "resize",
            {
                "width": width,
                "height": height,
                "aspect_ratio": aspect_ratio,
                "prevent_upscale": prevent_upscale,
            },
        )

    def crop(
        self, width: int, height: int, x: int | None = None, y: int | None = None
    ) -> ImageVariant:
        return self._with_operation("crop", {"width": width, "height": height, "x": x, "y": y})

    def fit(
        self,
        width: int,
        height: int | None = None,
        prevent_upscale: bool = False,
        position: str = "center",
    ) -> ImageVariant:
        return self._with_operation(
            "fit",
            {
                "width": width,
                "height": height,
                "prevent_upscale": prevent_upscale,
                "position": position,
            },
        )

    def rotate(self, angle: int) -> ImageVariant:
        return self._with_operation("rotate", {"angle": angle})

    def sharpen(self, amount: int) -> ImageVariant:
        return self._with_operation("sharpen", {"amount": amount})

    def widen(self, width: int, prevent_upscale: bool = False) -> ImageVariant:
        return self._with_operation(
            "widen", {"width": width, "prevent_upscale": prevent_upscale}
        )

    def heighten(self, height: int, prevent_upscale: bool = False) -> ImageVariant:
        return self._with_operation(
            "heighten", {"height": height, "prevent_upscale": prevent_upscale}
        )

    def flip(self, direction: str) -> ImageVariant:
        if direction not in (FLIP_HORIZONTAL, FLIP_VERTICAL):
            raise ValidationException(
                f"`{direction}` is invalid, provide `h` or `v`", field="direction"
            )
        return self._with_operation("flip", {"direction": direction})

    def flip_horizontal(self) -> ImageVariant:
        return self._with_operation("flip_horizontal", {"direction": FLIP_HORIZONTAL})

    def flip_vertical(self) -> ImageVariant:
        return self._with_operation("flip_vertical", {"direction": FLIP_VERTICAL})

    def callback(self, callback: Callable[..., Any]) -> ImageVariant:
        if not callable(callback):
            raise ValidationException("Provided value for callback is not a callable", field="callback")
        return self._with_operation("callback", {"callback": callback})

    def to_record(self) -> VariantRecord:
        return VariantRecord(
            operations=self.operations,
            path=self.path,
            url=self.url,
            optimize=self.should_optimize,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_record().to_dict()

    @classmethod
    def from_dict(
        cls,
        name: str,
        data: Mapping[str, Any],
        custom_operations: Iterable[str] = (),
    ) -> ImageVariant:
        """Rebuild a variant from its plain dict form.

        Operations are replayed through the builder methods; names listed in
        custom_operations pass through unchanged.

        Raises:
            UnsupportedOperationError: For an operation with no builder.
        """
        custom = set(custom_operations)
        variant = cls.create(name)
        if data.get("optimize") is True:
            variant = variant.optimize()
        if isinstance(data.get("path"), str) and data["path"]:
            variant = variant.with_path(data["path"])
        for operation, arguments in (data.get("operations") or {}).items():
            arguments = dict(arguments or {})
            if operation in custom:
                variant = variant.with_operation(operation, **arguments)
                continue
            entry = _OPERATION_BUILDERS.get(operation)
            if entry is None:
                raise UnsupportedOperationError(operation)
            builder, allowed = entry
            try:
                variant = builder(variant, **{k: v for k, v in arguments.items() if k in allowed})
            except TypeError as e:
                raise InvalidOperationArgumentError(operation, str(e)) from e
        return variant


# Builder and accepted arguments per operation, used when loading plain dicts.
_OPERATION_BUILDERS: dict[str, tuple[Callable[..., ImageVariant], tuple[str, ...]]] = {
    "resize": (ImageVariant.resize, ("width", "height", "aspect_ratio", "prevent_upscale")),
    "crop": (ImageVariant.crop, ("width", "height", "x", "y")),
    "fit": (ImageVariant.fit, ("width", "height", "prevent_upscale", "position")),
    "rotate": (ImageVariant.rotate, ("angle",)),
    "sharpen": (ImageVariant.sharpen, ("amount",)),
    "widen": (ImageVariant.widen, ("width", "prevent_upscale")),
    "heighten": (ImageVariant.heighten, ("height", "prevent_upscale")),
    "flip": (ImageVariant.flip, ("direction",)),
    "flip_horizontal": (ImageVariant.flip_horizontal, ()),
    "flip_vertical": (ImageVariant.flip_vertical, ()),
    "callback": (ImageVariant.callback, ("callback",)),
}


class ImageVariantCollection:
    """Ordered, name-unique set of image variants."""

    def __init__(self, variants: Iterable[ImageVariant] = ()) -> None:
        self._variants: dict[str, ImageVariant] = {}
        for variant in variants:
            self.add(variant)

    @classmethod
    def create(cls) -> ImageVariantCollection:
        return cls()

    @classmethod
    def from_dict(
        cls,
        variants: Mapping[str, Mapping[str, Any]],
        custom_operations: Iterable[str] = (),
    ) -> ImageVariantCollection:
        custom = tuple(custom_operations)
        return cls(
            ImageVariant.from_dict(name, data, custom) for name, data in variants.items()
        )

    def add(self, variant: ImageVariant) -> None:
        if self.has(variant.name):
            raise VariantExistsError(variant.name)
        self._variants[variant.name] = variant

    def add_new(self, name: str) -> ImageVariant:
        """Add an empty variant; use replace() to store its built form."""
        self.add(ImageVariant.create(name))
        return self.get(name)

    def replace(self, variant: ImageVariant) -> None:
        """Store a (re)built variant under its name."""
        self._variants[variant.name] = variant

    def get(self, name: str) -> ImageVariant:
        try:
            return self._variants[name]
        except KeyError:
            raise VariantNotFoundError(name) from None

    def has(self, name: str) -> bool:
        return name in self._variants

    def remove(self, name: str) -> None:
        self._variants.pop(name, None)

    def names(self) -> list[str]:
        return list(self._variants)

    def __iter__(self) -> Iterator[ImageVariant]:
        return iter(list(self._variants.values()))

    def __len__(self) -> int:
        return len(self._variants)

    def to_records(self) -> dict[str, VariantRecord]:
        return {name: variant.to_record() for name, variant in self._variants.items()}

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: variant.to_dict() for name, variant in self._variants.items()}

    def apply_to(self, file: File) -> File:
        """Return file with exactly these variants declared.

        Variants whose operations are unchanged keep their produced path/url.
        """
        declared: dict[str, VariantRecord] = {}
        for name, record in self.to_records().items():
            existing = file.variants.get(name)
            if (
                existing is not None
                and existing.operations == record.operations
                and existing.optimize == record.optimize
            ):
                declared[name] = existing
            else:
                declared[name] = record
        return file.with_variants(declared, merge=False)


class VariantRegistry:
    """Explicit (model, collection) -> variant collection configuration.

    key_strategy decides which ownership tags identify a configuration:
    "model_collection" uses both, "model" ignores the collection and
    "collection" ignores the model (the ignored part is stored as "*").
    """

    STRATEGIES: ClassVar[tuple[str, ...]] = ("model_collection", "model", "collection")

    def __init__(self, key_strategy: str = "model_collection") -> None:
        if key_strategy not in self.STRATEGIES:
            raise ValueError(
                f"Unknown key strategy: {key_strategy}. Supported: {self.STRATEGIES}"
            )
        self.key_strategy = key_strategy
        self._definitions: dict[tuple[str, str], ImageVariantCollection] = {}

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Mapping[str, Mapping[str, Mapping[str, Any]]]],
        key_strategy: str = "model_collection",
        custom_operations: Iterable[str] = (),
    ) -> VariantRegistry:
        """Build from {model: {collection: {variant: {operations, optimize}}}}."""
        registry = cls(key_strategy)
        custom = tuple(custom_operations)
        for model, collections in config.items():
            for collection, variants in collections.items():
                registry.register(
                    model,
                    collection,
                    ImageVariantCollection.from_dict(variants, custom),
                )
        return registry

    def _key(self, model: str | None, collection: str | None) -> tuple[str, str]:
        if self.key_strategy == "model":
            return (model or "", WILDCARD)
        if self.key_strategy == "collection":
            return (WILDCARD, collection or "")
        return (model or "", collection or "")

    def register(
        self,
        model: str | None,
        collection: str | None,
        variants: ImageVariantCollection,
    ) -> None:
        self._definitions[self._key(model, collection)] = variants

    def get(self, model: str | None, collection: str | None) -> ImageVariantCollection | None:
        return self._definitions.get(self._key(model, collection))

    def for_file(self, file: File) -> ImageVariantCollection | None:
        return self.get(file.model, file.collection)

    def declare_on(self, file: File) -> File:
        """Return file whose variants match the configuration for its owner."""
        variants = self.for_file(file)
        if variants is None:
            return file.without_variants()
        return variants.apply_to(file)
