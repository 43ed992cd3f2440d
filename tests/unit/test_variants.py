"""Unit tests for ImageVariant, ImageVariantCollection and VariantRegistry."""

import pytest

from file_storage.domain.exceptions import (
    InvalidOperationArgumentError,
    UnsupportedOperationError,
    ValidationException,
    VariantExistsError,
    VariantNotFoundError,
)
from file_storage.domain.file import File
from file_storage.domain.variants import (
    ImageVariant,
    ImageVariantCollection,
    VariantRegistry,
)


def _file(model: str = "Item", collection: str = "Photos") -> File:
    return File.create("cake.png", 10, "image/png", "Local", collection=collection, model=model)


class TestImageVariant:
    def test_builder_is_immutable(self) -> None:
        base = ImageVariant.create("thumb")
        resized = base.resize(50, 50)
        assert dict(base.operations) == {}
        assert list(resized.operations) == ["resize"]

    def test_operations_keep_declared_order(self) -> None:
        variant = ImageVariant.create("thumb").rotate(90).resize(50, 50).flip_horizontal()
        assert list(variant.operations) == ["rotate", "resize", "flip_horizontal"]

    def test_redeclared_operation_overwrites_in_place(self) -> None:
        variant = ImageVariant.create("thumb").resize(50, 50).rotate(90).resize(20, 20)
        assert list(variant.operations) == ["resize", "rotate"]
        assert variant.operations["resize"]["width"] == 20

    def test_resize_defaults(self) -> None:
        args = ImageVariant.create("thumb").resize(50, None).operations["resize"]
        assert dict(args) == {"width": 50, "height": None, "aspect_ratio": True, "prevent_upscale": False}

    def test_flip_rejects_unknown_direction(self) -> None:
        with pytest.raises(ValidationException):
            ImageVariant.create("thumb").flip("x")

    def test_callback_requires_callable(self) -> None:
        with pytest.raises(ValidationException):
            ImageVariant.create("thumb").callback("not callable")  # type: ignore[arg-type]

    def test_optimize_flag(self) -> None:
        assert ImageVariant.create("thumb").optimize().to_dict()["optimize"] is True

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationException):
            ImageVariant.create("")

    def test_from_dict_replays_builders(self) -> None:
        variant = ImageVariant.from_dict(
            "thumb",
            {"operations": {"fit": {"width": 30}, "sharpen": {"amount": 10}}, "optimize": True},
        )
        assert variant.should_optimize
        assert dict(variant.operations["fit"]) == {
            "width": 30,
            "height": None,
            "prevent_upscale": False,
            "position": "center",
        }
        assert dict(variant.operations["sharpen"]) == {"amount": 10}

    def test_from_dict_resize_with_width_only(self) -> None:
        variant = ImageVariant.from_dict("thumb", {"operations": {"resize": {"width": 10}}})
        assert variant.operations["resize"]["width"] == 10
        assert variant.operations["resize"]["height"] is None

    def test_from_dict_missing_argument_names_operation(self) -> None:
        with pytest.raises(InvalidOperationArgumentError) as exc_info:
            ImageVariant.from_dict("thumb", {"operations": {"rotate": {}}})
        assert exc_info.value.details["operation"] == "rotate"

    def test_from_dict_unknown_operation(self) -> None:
        with pytest.raises(UnsupportedOperationError) as exc_info:
            ImageVariant.from_dict("thumb", {"operations": {"blur": {"radius": 2}}})
        assert exc_info.value.details["operation"] == "blur"

    def test_from_dict_custom_operation_passes_through(self) -> None:
        variant = ImageVariant.from_dict(
            "thumb", {"operations": {"grayscale": {}}}, custom_operations=["grayscale"]
        )
        assert "grayscale" in variant.operations


class TestImageVariantCollection:
    def test_add_and_get(self) -> None:
        collection = ImageVariantCollection.create()
        collection.add(ImageVariant.create("thumb").resize(50, 50))
        assert collection.has("thumb")
        assert collection.get("thumb").name == "thumb"
        assert len(collection) == 1

    def test_duplicate_add_raises(self) -> None:
        collection = ImageVariantCollection([ImageVariant.create("thumb")])
        with pytest.raises(VariantExistsError):
            collection.add(ImageVariant.create("thumb"))

    def test_get_unknown_raises(self) -> None:
        with pytest.raises(VariantNotFoundError):
            ImageVariantCollection().get("thumb")

    def test_add_new_and_replace(self) -> None:
        collection = ImageVariantCollection()
        thumb = collection.add_new("thumb")
        collection.replace(thumb.resize(10, 10))
        assert "resize" in collection.get("thumb").operations

    def test_remove_and_names(self) -> None:
        collection = ImageVariantCollection([ImageVariant.create("a"), ImageVariant.create("b")])
        collection.remove("a")
        collection.remove("missing")
        assert collection.names() == ["b"]

    def test_apply_to_declares_exactly_these_variants(self) -> None:
        collection = ImageVariantCollection([ImageVariant.create("thumb").resize(50, 50)])
        file = _file().with_variant("stale", {})
        declared = collection.apply_to(file)
        assert set(declared.variants) == {"thumb"}

    def test_apply_to_keeps_completed_unchanged_variants(self) -> None:
        collection = ImageVariantCollection([ImageVariant.create("thumb").resize(50, 50)])
        file = collection.apply_to(_file())
        file = file.with_variant_path("thumb", "x/thumb.png")
        assert collection.apply_to(file).variant("thumb").path == "x/thumb.png"

    def test_apply_to_resets_changed_variants(self) -> None:
        old = ImageVariantCollection([ImageVariant.create("thumb").resize(50, 50)])
        new = ImageVariantCollection([ImageVariant.create("thumb").resize(60, 60)])
        file = old.apply_to(_file()).with_variant_path("thumb", "x/thumb.png")
        assert new.apply_to(file).variant("thumb").path == ""

    def test_from_dict_to_dict(self) -> None:
        data = {"thumb": {"operations": {"rotate": {"angle": 90}}, "optimize": False}}
        collection = ImageVariantCollection.from_dict(data)
        assert collection.to_dict()["thumb"]["operations"] == {"rotate": {"angle": 90}}


class TestVariantRegistry:
    CONFIG = {"Item": {"Photos": {"thumb": {"operations": {"resize": {"width": 50, "height": 50}}}}}}

    def test_from_config_and_for_file(self) -> None:
        registry = VariantRegistry.from_config(self.CONFIG)
        variants = registry.for_file(_file())
        assert variants is not None
        assert variants.names() == ["thumb"]

    def test_strict_lookup(self) -> None:
        registry = VariantRegistry.from_config(self.CONFIG)
        assert registry.for_file(_file(collection="Avatars")) is None
        assert registry.for_file(_file(model="User")) is None

    def test_model_strategy_ignores_collection(self) -> None:
        registry = VariantRegistry.from_config(self.CONFIG, key_strategy="model")
        assert registry.for_file(_file(collection="Avatars")) is not None

    def test_collection_strategy_ignores_model(self) -> None:
        registry = VariantRegistry.from_config(self.CONFIG, key_strategy="collection")
        assert registry.for_file(_file(model="User")) is not None

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            VariantRegistry("nope")

    def test_declare_on(self) -> None:
        registry = VariantRegistry.from_config(self.CONFIG)
        assert registry.declare_on(_file()).has_variant("thumb")
        unconfigured = _file(collection="Avatars").with_variant("old", {})
        assert not registry.declare_on(unconfigured).has_variants()
