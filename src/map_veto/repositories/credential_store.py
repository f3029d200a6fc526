"""Persisted captain credentials.

Records are stored as raw JSON strings under ``match_{match_id}_team_{team}_auth``
keys, so a corrupted record is returned as-is and left for the identity
resolver to judge.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from map_veto.models.identity import StoredCredential

logger = logging.getLogger(__name__)


class StorageUnavailableError(Exception):
    """Raised when the backing storage cannot be read at all."""


def credential_key(match_id: str, team_param: str) -> str:
    return f"match_{match_id}_team_{team_param}_auth"


class CredentialStore(Protocol):
    def get_raw(self, match_id: str, team_param: str) -> Optional[str]: ...

    def save(self, match_id: str, team_param: str, record: StoredCredential) -> None: ...

    def remove(self, match_id: str, team_param: str) -> None: ...


class InMemoryCredentialStore:
    """Credential store that lives only as long as the process."""

    def __init__(self, records: Optional[dict[str, str]] = None):
        self._records: dict[str, str] = dict(records or {})

    def get_raw(self, match_id: str, team_param: str) -> Optional[str]:
        return self._records.get(credential_key(match_id, team_param))

    def put_raw(self, match_id: str, team_param: str, raw: str) -> None:
        self._records[credential_key(match_id, team_param)] = raw

    def save(self, match_id: str, team_param: str, record: StoredCredential) -> None:
        self.put_raw(match_id, team_param, record.to_json())

    def remove(self, match_id: str, team_param: str) -> None:
        self._records.pop(credential_key(match_id, team_param), None)


class FileCredentialStore:
    """Credential store backed by a single JSON file of key -> raw record."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {self.path}: {e}") from e
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Credential file {self.path} is corrupted, ignoring it")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Credential file {self.path} has unexpected shape, ignoring it")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, records: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def get_raw(self, match_id: str, team_param: str) -> Optional[str]:
        return self._load().get(credential_key(match_id, team_param))

    def save(self, match_id: str, team_param: str, record: StoredCredential) -> None:
        records = self._load()
        records[credential_key(match_id, team_param)] = record.to_json()
        self._write(records)
        logger.info(f"Stored credential for match {match_id} team {team_param}")

    def remove(self, match_id: str, team_param: str) -> None:
        records = self._load()
        if records.pop(credential_key(match_id, team_param), None) is not None:
            self._write(records)
