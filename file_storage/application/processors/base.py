"""Processor protocol and sequential composition."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from file_storage.domain.file import File


class ProcessorProtocol(Protocol):
    """Produces variants for a stored file and returns the updated file.

    variants limits processing to those names; None means every declared one.
    A processor that does not apply to the file returns it unchanged.
    """

    async def process(self, file: File, variants: Sequence[str] | None = None) -> File:
        ...


class StackProcessor:
    """Runs processors in order, threading the file through each."""

    def __init__(self, processors: Iterable[ProcessorProtocol] = ()) -> None:
        self.processors: list[ProcessorProtocol] = list(processors)

    def add(self, processor: ProcessorProtocol) -> StackProcessor:
        self.processors.append(processor)
        return self

    async def process(self, file: File, variants: Sequence[str] | None = None) -> File:
        for processor in self.processors:
            file = await processor.process(file, variants)
        return file
