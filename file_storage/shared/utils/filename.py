"""Filename sanitization and splitting.

Used by the path builder before a client supplied filename is placed into a
storage path: the result is URL safe, free of path components, and bounded
in length with its extension preserved.
"""

import os
import re
import unicodedata
from typing import ClassVar, Protocol

from file_storage.domain.exceptions import InvalidFilenameError

DEFAULT_MAX_LENGTH = 190


def split_filename(filename: str) -> tuple[str, str | None]:
    """Split a filename into stem and extension (without the dot).

    Leading dots do not start an extension: ".env" -> (".env", None).
    """
    base = os.path.basename(filename)
    stem, dot, ext = base.rpartition(".")
    if not dot or not stem.strip("."):
        return base, None
    return stem, ext or None


class FilenameSanitizerProtocol(Protocol):
    """Anything that turns a raw filename into a storable one."""

    def sanitize(self, filename: str) -> str:
        ...


class NoopFilenameSanitizer:
    """Returns filenames unchanged (for trusted, pre-sanitized names)."""

    def sanitize(self, filename: str) -> str:
        return filename


class FilenameSanitizer:
    """Make client filenames safe for filesystems and URLs.

    Strips path components and control characters, replaces filesystem and
    URI reserved characters (and whitespace) with a replacement character,
    collapses repeated separators, and truncates the stem so the full name
    fits max_length with the extension kept intact.
    """

    RESERVED_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"[<>:\"/\\|?*\x00-\x1f\x7f#%&{}\[\]@!$'()+,;=`^~\s]+"
    )
    DUPLICATE_SEPARATORS: ClassVar[re.Pattern[str]] = re.compile(r"([-_.])[-_.]*")

    def __init__(
        self,
        max_length: int = DEFAULT_MAX_LENGTH,
        lowercase: bool = False,
        replacement: str = "-",
    ) -> None:
        if max_length < 8:
            raise ValueError("max_length must be at least 8")
        self.max_length = max_length
        self.lowercase = lowercase
        self.replacement = replacement

    def _clean(self, value: str) -> str:
        value = unicodedata.normalize("NFC", value)
        value = self.RESERVED_PATTERN.sub(self.replacement, value)
        value = self.DUPLICATE_SEPARATORS.sub(r"\1", value)
        return value.strip("-_. ")

    def sanitize(self, filename: str) -> str:
        """Return a safe filename.

        Raises:
            InvalidFilenameError: If nothing usable is left.
        """
        base = os.path.basename(filename.replace("\\", "/")).replace("\x00", "")
        stem, ext = split_filename(base)
        stem = self._clean(stem)
        ext = self._clean(ext) if ext else None
        if not stem:
            raise InvalidFilenameError(filename)
        if self.lowercase:
            stem = stem.lower()
            ext = ext.lower() if ext else None
        return self._truncate(stem, ext)

    def _truncate(self, stem: str, ext: str | None) -> str:
        if not ext:
            return stem[: self.max_length]
        # Keep at least one stem character next to the extension.
        ext = ext[: self.max_length - 2]
        stem = stem[: self.max_length - len(ext) - 1].rstrip("-_.") or stem[0]
        return f"{stem}.{ext}"
