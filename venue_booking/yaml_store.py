from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import quote
import logging
import shutil

from filelock import FileLock, Timeout
import yaml

from . import config
from .booking import TimeInterval
from .errors import ReservationConflictError, ReservationStorageError
from .store import ReservationRecord, ReservationStore, Venue, find_conflicts

logger = logging.getLogger(__name__)


def _venue_key(venue_id: str) -> str:
    # quote() leaves dots alone, which would let "." and ".." escape the directory.
    return quote(venue_id, safe="-_").replace(".", "%2E")


class ReservationYamlRepository(ReservationStore):
    """YAML-backed store with one reservation file per venue.

    Layout under ``base_dir``::

        venues.yaml                      venue catalog (with vendors)
        venues/<key>/reservations.yaml   reservations of one venue
        venues/<key>/events.yaml         audit trail of that venue
        venues/<key>/.lock               FileLock target serialising inserts

    Each venue has its own lock, so bookings on different venues never wait
    on each other.
    """

    def __init__(self, base_dir: str | Path = "data", lock_timeout: float | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.venues_file = self.base_dir / "venues.yaml"
        self.venues_dir = self.base_dir / "venues"
        self.lock_timeout = config.LOCK_TIMEOUT_SECONDS if lock_timeout is None else lock_timeout
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.venues_dir.mkdir(parents=True, exist_ok=True)
        if not self.venues_file.exists():
            self.venues_file.write_text("[]\n", encoding="utf-8")

    def _venue_dir(self, venue_id: str) -> Path:
        return self.venues_dir / _venue_key(venue_id)

    def _reservations_file(self, venue_id: str) -> Path:
        return self._venue_dir(venue_id) / "reservations.yaml"

    def _events_file(self, venue_id: str) -> Path:
        return self._venue_dir(venue_id) / "events.yaml"

    def _read_yaml_list(self, path: Path, events_file: Path | None = None) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error, events_file)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"), events_file)
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif events_file is not None:
                self._log_event(
                    events_file,
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception, events_file: Path | None) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted file %s", path)

        path.write_text("[]\n", encoding="utf-8")
        logger.warning("Recovered corrupted YAML file %s (backup %s): %s", path, backup_path.name, error)
        if events_file is not None and path != events_file:
            self._log_event(
                events_file,
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(
        self,
        events_file: Path,
        event_type: str,
        payload: dict[str, Any],
        event_time: datetime | None = None,
    ) -> None:
        timestamp = (event_time or datetime.now(timezone.utc)).isoformat(timespec="seconds")
        events = self._read_yaml_list(events_file)
        events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
        self._write_yaml_list(events_file, events)

    @contextmanager
    def _venue_lock(self, venue_id: str) -> Iterator[None]:
        lock_path = self._venue_dir(venue_id) / ".lock"
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with FileLock(str(lock_path), timeout=self.lock_timeout):
                yield
        except Timeout as error:
            raise ReservationStorageError(f"Timed out waiting for the lock of venue {venue_id}") from error

    def get_events(self, venue_id: str) -> list[dict[str, Any]]:
        return self._read_yaml_list(self._events_file(venue_id))

    def add_venue(self, venue: Venue) -> Venue:
        rows = [row for row in self._read_yaml_list(self.venues_file) if str(row.get("id")) != venue.venue_id]
        rows.append(venue.to_storage_dict())
        self._write_yaml_list(self.venues_file, rows)
        return venue

    def list_venues(self) -> list[Venue]:
        venues = [Venue.from_dict(row) for row in self._read_yaml_list(self.venues_file)]
        return [venue for venue in venues if not venue.is_deleted]

    def find_venue(self, venue_id: str) -> Venue | None:
        for row in self._read_yaml_list(self.venues_file):
            if str(row.get("id")) == venue_id:
                venue = Venue.from_dict(row)
                return None if venue.is_deleted else venue
        return None

    def _venue_reservations(self, venue_id: str) -> list[ReservationRecord]:
        rows = self._read_yaml_list(self._reservations_file(venue_id), self._events_file(venue_id))
        return [ReservationRecord.from_dict(row) for row in rows]

    def find_overlapping(self, venue_id: str, interval: TimeInterval) -> list[ReservationRecord]:
        return find_conflicts(self._venue_reservations(venue_id), interval)

    def insert(self, record: ReservationRecord) -> ReservationRecord:
        reservations_file = self._reservations_file(record.venue_id)
        events_file = self._events_file(record.venue_id)

        with self._venue_lock(record.venue_id):
            rows = self._read_yaml_list(reservations_file, events_file)
            existing = [ReservationRecord.from_dict(row) for row in rows]
            conflicts = find_conflicts(existing, record.interval) if record.is_active else []
            if conflicts:
                conflicting_ids = [row.reservation_id for row in conflicts]
                self._log_event(
                    events_file,
                    "BOOKING_CONFLICT_REJECTED",
                    {
                        "venue_id": record.venue_id,
                        "start": record.interval.start.isoformat(timespec="seconds"),
                        "end": record.interval.end.isoformat(timespec="seconds"),
                        "conflicting_ids": conflicting_ids,
                    },
                )
                raise ReservationConflictError(record.venue_id, conflicting_ids)

            rows.append(record.to_dict())
            self._write_yaml_list(reservations_file, rows)

            self._log_event(
                events_file,
                "BOOKING_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "venue_id": record.venue_id,
                    "start": record.interval.start.isoformat(timespec="seconds"),
                    "end": record.interval.end.isoformat(timespec="seconds"),
                    "status": record.status,
                    "booking_type": record.booking_type,
                },
                record.created_at,
            )
        return record

    def _stored_venue_ids(self) -> list[str]:
        venue_ids = [str(row.get("id")) for row in self._read_yaml_list(self.venues_file)]
        return [venue_id for venue_id in venue_ids if self._reservations_file(venue_id).exists()]

    def get_reservation(self, reservation_id: str) -> ReservationRecord | None:
        for venue_id in self._stored_venue_ids():
            for record in self._venue_reservations(venue_id):
                if record.reservation_id == reservation_id:
                    return record
        return None

    def list_reservations(self, venue_id: str | None = None, status: str | None = None) -> list[ReservationRecord]:
        venue_ids = [venue_id] if venue_id is not None else self._stored_venue_ids()
        records = [record for target in venue_ids for record in self._venue_reservations(target)]
        if status is not None:
            records = [record for record in records if record.status == status]
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records
