#!/usr/bin/env python3
"""
Coach Scribe - Session Store
Infrastructure layer: persistence of completed session records
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from coach_scribe.domain import MessageLevel, SessionMode, SessionRecord, post_message


class SessionStore(ABC):
    """
    CRUD boundary for session records

    Responsibilities:
    - Create a record after a pipeline run completes
    - List and filter records by mode for progress views
    """

    @abstractmethod
    def create(self, record: SessionRecord) -> SessionRecord:
        """Persist a new record and return it"""
        pass

    @abstractmethod
    def get(self, record_id: str) -> SessionRecord | None:
        """Look up one record"""
        pass

    @abstractmethod
    def list_records(
        self,
        mode: SessionMode | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[SessionRecord]:
        """Records newest first, optionally filtered by mode"""
        pass

    def latest(self, mode: SessionMode) -> SessionRecord | None:
        """Most recent record of a mode"""
        records = self.list_records(mode=mode, limit=1)
        return records[0] if records else None


class JsonSessionStore(SessionStore):
    """
    One JSON file per session record

    Files are named `session_YYYYMMDD_HHMMSS_<id>.json` inside the store
    directory, which is created on first write.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, record: SessionRecord) -> Path:
        timestamp = record.created_at.strftime("%Y%m%d_%H%M%S")
        return self.directory / f"session_{timestamp}_{record.id}.json"

    def create(self, record: SessionRecord) -> SessionRecord:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(record)
        with path.open("w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, ensure_ascii=False, indent=2)
        return record

    def _read(self, path: Path) -> SessionRecord | None:
        """Load one record file; unreadable files are reported and skipped"""
        try:
            with path.open(encoding="utf-8") as f:
                return SessionRecord.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            post_message(
                self, f"Skipping unreadable session file {path.name}: {e}", MessageLevel.WARNING
            )
            return None

    def _load_all(self) -> list[SessionRecord]:
        if not self.directory.exists():
            return []
        records = []
        for path in self.directory.glob("session_*.json"):
            record = self._read(path)
            if record is not None:
                records.append(record)
        return records

    def get(self, record_id: str) -> SessionRecord | None:
        for path in self.directory.glob(f"session_*_{record_id}.json"):
            return self._read(path)
        return None

    def list_records(
        self,
        mode: SessionMode | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[SessionRecord]:
        records = [r for r in self._load_all() if mode is None or r.mode == mode]
        records.sort(key=lambda r: r.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return records[offset:end]
