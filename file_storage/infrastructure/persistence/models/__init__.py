from file_storage.infrastructure.persistence.models.file_storage import FileStorageModel

__all__ = ["FileStorageModel"]
