"""
JSON File Storage

One JSON document holds every user's ledger:

    {"users": [...], "userData": {"<user_id>": {"transactions": [...],
                                               "assets": [...],
                                               "insights": [...],
                                               "last_updated": "..."}}}

The file is rewritten whole on every save, through a temporary file and
an atomic rename, so a crash mid-write leaves the previous version intact.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from src.models.ledger import LedgerState
from src.services.storage.interface import (
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


def _empty_document() -> dict[str, Any]:
    return {"users": [], "userData": {}}


class JsonFileLedgerStorage(LedgerStorageInterface):
    """Ledger storage backed by a single local JSON file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return _empty_document()
        try:
            with self._path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Ledger file {self._path} is not a JSON object")
        document.setdefault("users", [])
        document.setdefault("userData", {})
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    async def load_ledger(self, user_id: str) -> LedgerState:
        """Load a user's ledger (empty for an unknown user)."""
        raw = self._read_document()["userData"].get(user_id)
        if raw is None:
            return LedgerState()
        try:
            return LedgerState.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"Stored ledger for {user_id} is malformed: {e}")

    async def save_ledger(self, user_id: str, state: LedgerState) -> bool:
        """Replace a user's ledger and stamp last_updated."""
        document = self._read_document()
        stored = state.model_copy(update={"last_updated": datetime.now(timezone.utc)})
        document["userData"][user_id] = stored.model_dump(mode="json")
        self._write_document(document)
        return True

    async def delete_ledger(self, user_id: str) -> bool:
        document = self._read_document()
        if user_id not in document["userData"]:
            raise NotFoundError(f"No ledger stored for user: {user_id}")
        del document["userData"][user_id]
        self._write_document(document)
        return True
