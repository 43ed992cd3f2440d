"""Public URLs for stored files and their variants."""

from typing import Protocol
from urllib.parse import quote

from file_storage.domain.file import File


class UrlBuilderProtocol(Protocol):
    def url(self, file: File) -> str:
        ...

    def url_for_variant(self, file: File, name: str) -> str:
        ...


class LocalUrlBuilder:
    """Joins base_url with the stored path (separators become "/")."""

    def __init__(self, base_url: str = "", directory_separator: str = "/") -> None:
        self.base_url = base_url.rstrip("/")
        self.directory_separator = directory_separator

    def _join(self, path: str) -> str:
        if not path:
            return ""
        path = path.replace(self.directory_separator, "/").lstrip("/")
        return f"{self.base_url}/{quote(path)}"

    def url(self, file: File) -> str:
        return self._join(file.path)

    def url_for_variant(self, file: File, name: str) -> str:
        return self._join(file.variant(name).path)
