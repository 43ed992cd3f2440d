"""Deterministic storage paths for originals and variants.

Paths are expanded from templates such as
"{model}{ds}{collection}{ds}{randomPath}{ds}{strippedId}{ds}{strippedId}.{extension}".
Templates are compiled once at construction so an unknown token is reported
as a configuration error before any file is processed.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import types
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Protocol

from file_storage.core.config import DEFAULT_PATH_TEMPLATE, DEFAULT_VARIANT_PATH_TEMPLATE
from file_storage.domain.exceptions import InvalidTemplateError
from file_storage.domain.file import File
from file_storage.shared.utils.filename import (
    FilenameSanitizer,
    FilenameSanitizerProtocol,
    split_filename,
)

_TOKEN_RE = re.compile(r"\{(\w+)\}")


class PathBuilderProtocol(Protocol):
    """Builds storage-relative paths for a file and its variants."""

    def path(self, file: File, options: Mapping[str, Any] | None = None) -> str:
        ...

    def path_for_variant(
        self, file: File, variant: str, options: Mapping[str, Any] | None = None
    ) -> str:
        ...


def _code_fingerprint(code: types.CodeType) -> str:
    digest = hashlib.sha1(code.co_code)
    digest.update(repr(code.co_names).encode())
    for const in code.co_consts:
        if isinstance(const, types.CodeType):
            part = _code_fingerprint(const)
        elif isinstance(const, frozenset):
            part = repr(sorted(const, key=repr))
        else:
            part = repr(const)
        digest.update(part.encode())
    return digest.hexdigest()[:12]


def _callable_identity(value: Any) -> str:
    """module.qualname, plus a bytecode fingerprint for plain functions.

    Two lambdas share a qualname but not their code, so the fingerprint keeps
    their variants apart. Values captured in closures are not part of it.
    """
    module = getattr(value, "__module__", None) or type(value).__module__
    name = getattr(value, "__qualname__", None) or type(value).__qualname__
    identity = f"{module}.{name}"
    code = getattr(value, "__code__", None)
    if isinstance(code, types.CodeType):
        identity += f"#{_code_fingerprint(code)}"
    return identity


def canonical_json(data: Mapping[str, Any]) -> str:
    """Canonical JSON for deterministic hashing (sorted keys, no spaces).

    Callables (callback operations) are represented by _callable_identity.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_callable_identity,
    )


def hashed_variant(operations: Mapping[str, Mapping[str, Any]]) -> str:
    """Short hash of a variant's operation set; key order does not matter."""
    plain = {name: dict(args) for name, args in operations.items()}
    return hashlib.sha1(canonical_json(plain).encode()).hexdigest()[:8]


def random_path(value: str, levels: int, separator: str) -> str:
    """`levels` nested two-character directories derived from value."""
    digest = hashlib.sha1(value.encode()).hexdigest()
    return separator.join(digest[i * 2 : i * 2 + 2] for i in range(min(levels, 20)))


class PathBuilder:
    """Template based path builder.

    Recognized tokens: {model}, {collection}, {ds}, {id}, {strippedId},
    {modelId}, {randomPath}, {filename}, {extension}, {mimeType},
    {hashedFilename}, {hashedVariant}, {variant}. The variant-only tokens
    resolve to an empty string in the original file template.
    """

    TOKENS: ClassVar[frozenset[str]] = frozenset({
        "model",
        "collection",
        "ds",
        "id",
        "strippedId",
        "modelId",
        "randomPath",
        "filename",
        "extension",
        "mimeType",
        "hashedFilename",
        "hashedVariant",
        "variant",
    })

    def __init__(
        self,
        path_template: str = DEFAULT_PATH_TEMPLATE,
        variant_path_template: str = DEFAULT_VARIANT_PATH_TEMPLATE,
        *,
        random_path_levels: int = 1,
        directory_separator: str = os.sep,
        sanitizer: FilenameSanitizerProtocol | None = None,
        prefix: str = "",
    ) -> None:
        """Initialize and compile both templates.

        Args:
            path_template: Template for original files.
            variant_path_template: Template for variants.
            random_path_levels: Directory levels produced by {randomPath}.
            directory_separator: Value of {ds}.
            sanitizer: Filename sanitizer (default FilenameSanitizer()).
            prefix: Prepended to every built path.

        Raises:
            InvalidTemplateError: If a template uses an unknown token.
        """
        self.path_template = path_template
        self.variant_path_template = variant_path_template
        self.random_path_levels = random_path_levels
        self.directory_separator = directory_separator
        self.sanitizer = sanitizer or FilenameSanitizer()
        self.prefix = prefix
        self._compiled = self.compile(path_template)
        self._compiled_variant = self.compile(variant_path_template)

    @classmethod
    def from_settings(cls, settings: Any) -> PathBuilder:
        return cls(
            settings.path_template,
            settings.variant_path_template,
            random_path_levels=settings.random_path_levels,
            directory_separator=settings.directory_separator,
            sanitizer=FilenameSanitizer(max_length=settings.filename_max_length),
        )

    @classmethod
    def compile(cls, template: str) -> list[tuple[bool, str]]:
        """Split template into (is_token, text) parts, validating tokens."""
        parts: list[tuple[bool, str]] = []
        for i, part in enumerate(_TOKEN_RE.split(template)):
            if i % 2 == 0:
                if part:
                    parts.append((False, part))
            elif part not in cls.TOKENS:
                raise InvalidTemplateError(template, part)
            else:
                parts.append((True, part))
        return parts

    def path(self, file: File, options: Mapping[str, Any] | None = None) -> str:
        """Return the storage path of the original file."""
        return self._build(self._compiled, file, None, options or {})

    def path_for_variant(
        self, file: File, variant: str, options: Mapping[str, Any] | None = None
    ) -> str:
        """Return the storage path of a declared variant.

        Raises:
            VariantNotFoundError: If the variant is not declared on file.
        """
        file.variant(variant)
        return self._build(self._compiled_variant, file, variant, options or {})

    def _token_values(
        self, file: File, variant: str | None, ds: str, levels: int
    ) -> dict[str, Callable[[], str]]:
        stripped_id = file.uuid.replace("-", "")

        def filename() -> str:
            stem, _ = split_filename(self.sanitizer.sanitize(file.filename))
            return stem

        def hashed_filename() -> str:
            return hashlib.sha1(self.sanitizer.sanitize(file.filename).encode()).hexdigest()

        return {
            "model": lambda: file.model or "",
            "collection": lambda: file.collection or "",
            "ds": lambda: ds,
            "id": lambda: file.uuid,
            "strippedId": lambda: stripped_id,
            "modelId": lambda: "" if file.model_id is None else str(file.model_id),
            "randomPath": lambda: random_path(stripped_id, levels, ds),
            "filename": filename,
            "extension": lambda: (file.extension or "").lower(),
            "mimeType": lambda: file.mime_type or "",
            "hashedFilename": hashed_filename,
            "hashedVariant": lambda: (
                hashed_variant(file.variant(variant).operations) if variant else ""
            ),
            "variant": lambda: variant or "",
        }

    def _build(
        self,
        compiled: list[tuple[bool, str]],
        file: File,
        variant: str | None,
        options: Mapping[str, Any],
    ) -> str:
        ds = options.get("directory_separator", self.directory_separator)
        levels = options.get("random_path_levels", self.random_path_levels)
        prefix = options.get("prefix", self.prefix)
        values = self._token_values(file, variant, ds, levels)
        raw = "".join(values[text]() if is_token else text for is_token, text in compiled)
        return prefix + self._normalize(raw, ds)

    @staticmethod
    def _normalize(path: str, ds: str) -> str:
        """Collapse separators and drop dots left dangling by empty tokens."""
        sep = re.escape(ds)
        path = re.sub(f"(?:{sep})+", lambda _: ds, path)
        path = re.sub(r"\.{2,}", ".", path)
        path = re.sub(f"\\.(?={sep})|(?<={sep})\\.", "", path)
        while ds and path.startswith(ds):
            path = path.removeprefix(ds)
        while ds and path.endswith(ds):
            path = path.removesuffix(ds)
        return path.rstrip(".")


class ConditionalPathBuilder:
    """Delegates to the first builder whose condition accepts the file."""

    def __init__(self, default: PathBuilderProtocol) -> None:
        self.default = default
        self._builders: list[tuple[Callable[[File], bool], PathBuilderProtocol]] = []

    def add_path_builder(
        self, path_builder: PathBuilderProtocol, condition: Callable[[File], bool]
    ) -> ConditionalPathBuilder:
        self._builders.append((condition, path_builder))
        return self

    def _select(self, file: File) -> PathBuilderProtocol:
        for condition, builder in self._builders:
            if condition(file):
                return builder
        return self.default

    def path(self, file: File, options: Mapping[str, Any] | None = None) -> str:
        return self._select(file).path(file, options)

    def path_for_variant(
        self, file: File, variant: str, options: Mapping[str, Any] | None = None
    ) -> str:
        return self._select(file).path_for_variant(file, variant, options)
