"""File-backed storage for the single credential record."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from gtm_mcp.models.oauth import CredentialRecord


class TokenFileStore:
    """Read and overwrite the credential record at one fixed path."""

    def __init__(self, token_path: Path) -> None:
        self._path = Path(token_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> Optional[CredentialRecord]:
        """Return the stored record, or ``None`` when no file exists.

        Malformed content raises ``ValueError``.
        """
        if not self.exists():
            return None
        data = json.loads(self._path.read_text(encoding="utf-8"))
        return CredentialRecord.model_validate(data)

    def save(self, record: CredentialRecord) -> None:
        """Replace the stored record wholesale."""
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)

        data_json = json.dumps(record.model_dump(), indent=2)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data_json)
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


__all__ = ["TokenFileStore"]
