"""Local persistence for the veto client."""

from map_veto.repositories.credential_store import (
    CredentialStore,
    FileCredentialStore,
    InMemoryCredentialStore,
    StorageUnavailableError,
    credential_key,
)

__all__ = [
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "StorageUnavailableError",
    "credential_key",
]
