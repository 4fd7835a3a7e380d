"""
FastAPI dependencies for storage.
"""

from packages.shared.storage import StorageBackend, get_storage_backend


def get_storage() -> StorageBackend:
    """
    Return the process-wide storage backend.

    Switching between local, S3 and S3-with-local-fallback storage is done
    through the STORAGE_TYPE environment variable.
    """
    return get_storage_backend()
