"""JSON-file backed user/token store.

The file is re-read before every lookup and every write so that edits made
by another tool (or a hand-edited ``db.json``) are always picked up. There is
no file locking: two processes writing at once can lose an update.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from calendar_dashboard.errors import UserStoreError
from calendar_dashboard.schemas import StoreData, TokenBundle, UserRecord

log = logging.getLogger(__name__)


class UserStore:
    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def init(self) -> None:
        """Create the store file with an empty user list if it does not exist."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write(StoreData())
            log.info("Created user store at %s", self.path)

    def _read(self) -> StoreData:
        if not self.path.exists():
            return StoreData()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return StoreData.model_validate_json(raw) if raw.strip() else StoreData()
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            raise UserStoreError("Could not read user store", details=str(exc)) from exc

    def _write(self, data: StoreData) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(data.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise UserStoreError("Could not write user store", details=str(exc)) from exc

    def get(self, email: str) -> UserRecord | None:
        data = self._read()
        return next((u for u in data.users if u.email == email), None)

    def save(self, email: str, credentials: TokenBundle) -> None:
        data = self._read()
        user = next((u for u in data.users if u.email == email), None)
        if user:
            user.credentials = credentials
        else:
            data.users.append(UserRecord(email=email, credentials=credentials))
        self._write(data)
        log.info("Stored credentials for %s (%d users total)", email, len(data.users))
