import threading
from pathlib import Path
from typing import List

from pydantic import ValidationError

from webreplay.core.constants import INDEX_FILENAME
from webreplay.core.logging import log
from webreplay.core.models import IndexEntry, RecordingIndex, RecordingSession
from webreplay.core.state import PersistenceError, SessionNotFoundError
from webreplay.recorder.metadata import now_ms
from webreplay.utils.file_io import safe_read_json, safe_write_json


class SessionStore:
    """Durable storage for recording sessions.

    Each session lives in its own ``<id>.json`` file under the recordings
    directory. ``index.json`` next to them holds one summary entry per
    session and is the only thing consulted when listing.

    Every index mutation is a whole-file read-modify-write done under a
    single lock, so two mutations in this process never interleave.
    """

    def __init__(self, recordings_dir: Path):
        self.recordings_dir = Path(recordings_dir)
        self.recordings_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.recordings_dir / INDEX_FILENAME
        self._lock = threading.RLock()

    def session_path(self, session_id: str) -> Path:
        return self.recordings_dir / f"{session_id}.json"

    # -- blobs ---------------------------------------------------------------

    def save(self, session: RecordingSession) -> Path:
        """Write the full session, overwriting any previous copy."""
        path = self.session_path(session.id)
        if not safe_write_json(path, session.to_dict()):
            raise PersistenceError(f"Failed to write recording {session.id} to {path}")
        log(f"Saved session to: {path}", session_id=session.id)
        return path

    def load(self, session_id: str) -> RecordingSession:
        path = self.session_path(session_id)
        if not path.exists():
            raise SessionNotFoundError(session_id)
        data = safe_read_json(path, default={})
        try:
            return RecordingSession.model_validate(data)
        except ValidationError as e:
            log(f"Recording {session_id} is not a valid session: {e}", level="error")
            raise SessionNotFoundError(session_id) from e

    def exists(self, session_id: str) -> bool:
        return self.session_path(session_id).exists()

    # -- index ---------------------------------------------------------------

    def load_index(self) -> RecordingIndex:
        data = safe_read_json(self.index_path, default={})
        try:
            return RecordingIndex.model_validate(data)
        except ValidationError as e:
            log(f"Error loading recordings index: {e}", level="error")
            return RecordingIndex(last_updated=now_ms())

    def _write_index(self, index: RecordingIndex) -> None:
        index.last_updated = now_ms()
        if not safe_write_json(self.index_path, index.to_dict()):
            # The blob is already on disk; the index is behind until the next write.
            log("Recordings index could not be written", level="error")

    def list(self) -> List[IndexEntry]:
        """Summary entries, in index order. Never opens session files."""
        with self._lock:
            return list(self.load_index().recordings)

    def update_index(self, session: RecordingSession, filepath: Path) -> None:
        """Replace the index entry for ``session`` with a fresh one."""
        with self._lock:
            index = self.load_index()
            index.recordings = [r for r in index.recordings if r.id != session.id]
            index.recordings.append(IndexEntry(
                id=session.id,
                name=session.name,
                start_url=session.start_url,
                start_time=session.start_time,
                duration=session.total_duration,
                event_count=len(session.events),
                filepath=Path(filepath).name,
            ))
            self._write_index(index)

    def persist(self, session: RecordingSession) -> Path:
        """Write the session blob, then its index entry."""
        with self._lock:
            path = self.save(session)
            self.update_index(session, path)
            return path

    def delete(self, session_id: str) -> bool:
        """Remove the blob and index entry. Unknown ids are a no-op.

        Returns True if anything was removed.
        """
        with self._lock:
            removed = False
            path = self.session_path(session_id)
            if path.exists():
                path.unlink()
                removed = True

            index = self.load_index()
            remaining = [r for r in index.recordings if r.id != session_id]
            if len(remaining) != len(index.recordings):
                index.recordings = remaining
                self._write_index(index)
                removed = True

        if removed:
            log(f"Deleted session: {session_id}", session_id=session_id)
        else:
            log(f"Delete requested for unknown session: {session_id}", level="debug")
        return removed

    def rename(self, session_id: str, name: str) -> RecordingSession:
        """Set the session name in both the blob and its index entry."""
        with self._lock:
            index = self.load_index()
            entry = next((r for r in index.recordings if r.id == session_id), None)
            if entry is None:
                raise SessionNotFoundError(session_id)

            session = self.load(session_id)
            session.name = name
            self.save(session)

            entry.name = name
            self._write_index(index)

        log(f'Updated session name: {session_id} -> "{name}"', session_id=session_id)
        return session
