"""Lossless-ish re-encoding of variant output."""

import io
from typing import Protocol

from PIL import Image


class OptimizerProtocol(Protocol):
    def optimize(self, data: bytes, fmt: str) -> bytes:
        ...


class PillowOptimizer:
    """Re-encode with Pillow's optimize flag; keeps whichever output is smaller."""

    def __init__(self, quality: int = 85) -> None:
        self.quality = quality

    def optimize(self, data: bytes, fmt: str) -> bytes:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            buffer = io.BytesIO()
            params: dict[str, object] = {"optimize": True}
            if fmt in ("JPEG", "WEBP"):
                params["quality"] = self.quality
            if fmt == "JPEG":
                params["progressive"] = True
            image.save(buffer, format=fmt, **params)
        optimized = buffer.getvalue()
        return optimized if len(optimized) < len(data) else data
