"""
Named snapshots of calculator inputs, stored as a JSON list on disk.

A snapshot is an opaque copy of a full CalcInput plus a name and timestamp.
Nothing here touches the cost engine; loading a snapshot just gives back the
input to recompute.
"""

import logging
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from car_cost_calculator.errors import SnapshotNotFoundError
from car_cost_calculator.models import CalcInput

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="constants")

    id: str
    name: str
    timestamp: int          # Milliseconds since the epoch
    data: CalcInput


_SNAPSHOT_LIST = TypeAdapter(list[Snapshot])


class SnapshotStore:
    """JSON-file snapshot store. Every call re-reads the file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> list[Snapshot]:
        if not self.path.exists():
            return []
        return _SNAPSHOT_LIST.validate_json(self.path.read_bytes())

    def _load_for_write(self) -> list[Snapshot]:
        """
        Current snapshots before a save. An unreadable file is moved aside
        to `<name>.corrupt-<ms>` so the save never overwrites it.
        """
        try:
            return self._load()
        except (OSError, ValidationError) as e:
            backup = self.path.with_name(f"{self.path.name}.corrupt-{int(time.time() * 1000)}")
            self.path.replace(backup)
            logger.error("Unreadable snapshot file %s moved to %s: %s", self.path, backup, e)
            return []

    def _write(self, snapshots: list[Snapshot]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_SNAPSHOT_LIST.dump_json(snapshots, indent=2))

    def list_snapshots(self) -> list[Snapshot]:
        """All snapshots, oldest first. An unreadable file lists as empty."""
        try:
            return self._load()
        except (OSError, ValidationError) as e:
            logger.error("Failed to load snapshots from %s: %s", self.path, e)
            return []

    def save(
        self,
        calc_input: CalcInput,
        name: str | None = None,
        timestamp_ms: int | None = None,
    ) -> Snapshot:
        """
        Append a copy of `calc_input`. A blank name becomes "Save N".
        The id is the save time in milliseconds, bumped if already taken.
        """
        snapshots = self._load_for_write()
        timestamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)

        taken = {s.id for s in snapshots}
        id_ms = timestamp
        while str(id_ms) in taken:
            id_ms += 1

        snapshot = Snapshot(
            id=str(id_ms),
            name=(name or "").strip() or f"Save {len(snapshots) + 1}",
            timestamp=timestamp,
            data=calc_input.model_copy(deep=True),
        )
        snapshots.append(snapshot)
        self._write(snapshots)
        logger.info("Saved snapshot %r (%s) to %s", snapshot.name, snapshot.id, self.path)
        return snapshot

    def get(self, snapshot_id: str) -> Snapshot:
        for snapshot in self.list_snapshots():
            if snapshot.id == snapshot_id:
                return snapshot
        raise SnapshotNotFoundError(snapshot_id)

    def delete(self, snapshot_id: str) -> None:
        snapshots = self.list_snapshots()
        remaining = [s for s in snapshots if s.id != snapshot_id]
        if len(remaining) == len(snapshots):
            raise SnapshotNotFoundError(snapshot_id)
        self._write(remaining)
        logger.info("Deleted snapshot %s", snapshot_id)
