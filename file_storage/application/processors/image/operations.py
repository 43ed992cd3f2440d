"""Image operations over Pillow, dispatched through a closed lookup table.

Each operation takes a PIL image and the variant's argument mapping and
returns a new image. Unknown names raise UnsupportedOperationError; extra
operations are added explicitly with ImageOperations.register().
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from PIL import Image, ImageFilter, ImageOps

from file_storage.domain.exceptions import (
    InvalidOperationArgumentError,
    UnsupportedOperationError,
)

Operation = Callable[[Image.Image, Mapping[str, Any]], Image.Image]

RESAMPLE = Image.Resampling.LANCZOS

POSITIONS: dict[str, tuple[float, float]] = {
    "top-left": (0.0, 0.0),
    "top": (0.5, 0.0),
    "top-right": (1.0, 0.0),
    "left": (0.0, 0.5),
    "center": (0.5, 0.5),
    "right": (1.0, 0.5),
    "bottom-left": (0.0, 1.0),
    "bottom": (0.5, 1.0),
    "bottom-right": (1.0, 1.0),
}


def _positive_int(operation: str, args: Mapping[str, Any], key: str, required: bool = True) -> int | None:
    value = args.get(key)
    if value is None:
        if required:
            raise InvalidOperationArgumentError(operation, f"`{key}` is required")
        return None
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidOperationArgumentError(operation, f"`{key}` must be an integer") from e
    if number <= 0:
        raise InvalidOperationArgumentError(operation, f"`{key}` must be positive")
    return number


def resize(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Resize to width x height; with aspect_ratio the result fits inside the box."""
    width = _positive_int("resize", args, "width", required=False)
    height = _positive_int("resize", args, "height", required=False)
    if width is None and height is None:
        raise InvalidOperationArgumentError("resize", "`width` or `height` is required")
    src_w, src_h = image.size
    if args.get("aspect_ratio", True):
        scales = []
        if width is not None:
            scales.append(width / src_w)
        if height is not None:
            scales.append(height / src_h)
        scale = min(scales)
        if args.get("prevent_upscale"):
            scale = min(scale, 1.0)
        size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
    else:
        size = (width or src_w, height or src_h)
        if args.get("prevent_upscale"):
            size = (min(size[0], src_w), min(size[1], src_h))
    if size == image.size:
        return image.copy()
    return image.resize(size, RESAMPLE)


def crop(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Cut a width x height box at (x, y); centered when x/y are omitted."""
    width = min(_positive_int("crop", args, "width") or 0, image.width)
    height = min(_positive_int("crop", args, "height") or 0, image.height)
    x = args.get("x")
    y = args.get("y")
    left = (image.width - width) // 2 if x is None else max(0, min(int(x), image.width - width))
    top = (image.height - height) // 2 if y is None else max(0, min(int(y), image.height - height))
    return image.crop((left, top, left + width, top + height))


def fit(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Scale and crop to exactly width x height (height defaults to width)."""
    width = _positive_int("fit", args, "width") or 0
    height = _positive_int("fit", args, "height", required=False) or width
    position = args.get("position") or "center"
    if position not in POSITIONS:
        raise InvalidOperationArgumentError("fit", f"unknown position `{position}`")
    if args.get("prevent_upscale") and (width > image.width or height > image.height):
        scale = min(image.width / width, image.height / height)
        width = max(1, round(width * scale))
        height = max(1, round(height * scale))
    return ImageOps.fit(image, (width, height), RESAMPLE, centering=POSITIONS[position])


def rotate(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Rotate counter-clockwise by angle degrees, growing the canvas to fit."""
    if args.get("angle") is None:
        raise InvalidOperationArgumentError("rotate", "`angle` is required")
    return image.rotate(float(args["angle"]), resample=Image.Resampling.BICUBIC, expand=True)


def sharpen(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Unsharp mask; amount is 0-100."""
    if args.get("amount") is None:
        raise InvalidOperationArgumentError("sharpen", "`amount` is required")
    amount = max(0, min(int(args["amount"]), 100))
    return image.filter(ImageFilter.UnsharpMask(radius=2, percent=amount * 2, threshold=3))


def widen(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    width = _positive_int("widen", args, "width") or 0
    return resize(
        image,
        {"width": width, "aspect_ratio": True, "prevent_upscale": args.get("prevent_upscale", False)},
    )


def heighten(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    height = _positive_int("heighten", args, "height") or 0
    return resize(
        image,
        {"height": height, "aspect_ratio": True, "prevent_upscale": args.get("prevent_upscale", False)},
    )


def flip(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    direction = args.get("direction")
    if direction == "h":
        return ImageOps.mirror(image)
    if direction == "v":
        return ImageOps.flip(image)
    raise InvalidOperationArgumentError("flip", "`direction` must be `h` or `v`")


def callback(image: Image.Image, args: Mapping[str, Any]) -> Image.Image:
    """Call a user function with the image; it may return a new image or None."""
    fn = args.get("callback")
    if not callable(fn):
        raise InvalidOperationArgumentError("callback", "`callback` must be callable")
    result = fn(image)
    return image if result is None else result


class ImageOperations:
    """Lookup table from operation name to Pillow implementation."""

    def __init__(self) -> None:
        self._operations: dict[str, Operation] = {
            "resize": resize,
            "crop": crop,
            "fit": fit,
            "rotate": rotate,
            "sharpen": sharpen,
            "widen": widen,
            "heighten": heighten,
            "flip": flip,
            "flip_horizontal": lambda image, _: ImageOps.mirror(image),
            "flip_vertical": lambda image, _: ImageOps.flip(image),
            "callback": callback,
        }

    def register(self, name: str, operation: Operation) -> None:
        self._operations[name] = operation

    def supports(self, name: str) -> bool:
        return name in self._operations

    def names(self) -> list[str]:
        return list(self._operations)

    def apply(self, image: Image.Image, name: str, args: Mapping[str, Any]) -> Image.Image:
        """Apply one operation.

        Raises:
            UnsupportedOperationError: Unknown operation name.
            InvalidOperationArgumentError: Missing or invalid argument.
        """
        operation = self._operations.get(name)
        if operation is None:
            raise UnsupportedOperationError(name)
        return operation(image, args)

    def apply_all(
        self, image: Image.Image, operations: Mapping[str, Mapping[str, Any]]
    ) -> Image.Image:
        for name, args in operations.items():
            image = self.apply(image, name, args)
        return image
