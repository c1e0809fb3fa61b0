import threading
from typing import Optional

from webreplay.core.logging import log
from webreplay.core.models import (
    RecordedAction,
    RecorderState,
    RecordingSession,
    StartResult,
    StopResult,
    Viewport,
)
from webreplay.core.state import AlreadyRecordingError, NotRecordingError, RecorderStatus
from webreplay.recorder.metadata import calculate_metadata, generate_session_id, now_ms
from webreplay.recorder.session_store import SessionStore


class RecorderManager:
    """Owns the single recording slot and its Idle/Recording transitions.

    All transitions go through one lock. Stop persists the sealed session
    before the slot is released, so a failed write leaves the recording
    active and ``stop`` can be retried.
    """

    def __init__(self, store: SessionStore):
        self.store = store
        self._lock = threading.Lock()
        self._state = RecorderState()
        log(f"Recorder initialized. Storage: {store.recordings_dir}")

    @property
    def status(self) -> RecorderStatus:
        return RecorderStatus.RECORDING if self._state.is_recording else RecorderStatus.IDLE

    @property
    def is_recording(self) -> bool:
        return self._state.is_recording

    def start(self, name: Optional[str] = None, start_url: Optional[str] = None) -> StartResult:
        with self._lock:
            if self._state.is_recording:
                raise AlreadyRecordingError(self._state.session_id or "")

            session_id = generate_session_id()
            start_time = now_ms()
            self._state = RecorderState(
                is_recording=True,
                session_id=session_id,
                start_time=start_time,
                event_count=0,
                # viewport stays a placeholder until the first event arrives
                current_session=RecordingSession(
                    id=session_id,
                    name=name,
                    start_url=start_url or "",
                    start_time=start_time,
                ),
            )

        log(f"Started recording session: {session_id}", session_id=session_id)
        return StartResult(session_id=session_id, start_time=start_time)

    def add_event(self, event: RecordedAction) -> bool:
        """Append an event to the active session.

        Returns False, without raising, when nothing is recording; events can
        still be in flight from the page after a stop.
        """
        with self._lock:
            session = self._state.current_session
            if not self._state.is_recording or session is None:
                log("Received event but not recording", level="warning", event_type=event.type)
                return False

            if self._state.event_count == 0:
                if event.viewport is not None:
                    session.viewport = event.viewport
                if not session.start_url:
                    session.start_url = event.url

            session.events.append(event)
            self._state.event_count += 1
            return True

    def record_page_load(self, url: str, viewport: Viewport) -> bool:
        """Synthesize a pageLoad event timed against the previous event."""
        with self._lock:
            session = self._state.current_session
            if not self._state.is_recording or session is None or self._state.start_time is None:
                return False
            timestamp = now_ms() - self._state.start_time
            events = session.events
            duration = timestamp - events[-1].timestamp if events else 0

        recorded = self.add_event(RecordedAction(
            type="pageLoad",
            url=url,
            timestamp=timestamp,
            duration=duration,
            viewport=viewport,
        ))
        if recorded:
            log(f"Recorded page load: {url}")
        return recorded

    def last_event_time(self) -> Optional[int]:
        """Absolute time of the latest event; None until the first one arrives."""
        with self._lock:
            session = self._state.current_session
            if not self._state.is_recording or self._state.start_time is None:
                return None
            if session is None or not session.events:
                return None
            return self._state.start_time + session.events[-1].timestamp

    def stop(self) -> StopResult:
        with self._lock:
            session = self._state.current_session
            if not self._state.is_recording or session is None:
                raise NotRecordingError()

            end_time = now_ms()
            session.end_time = end_time
            session.total_duration = end_time - session.start_time
            session.metadata = calculate_metadata(session.events)

            if not session.start_url and session.events:
                session.start_url = session.events[0].url

            filepath = self.store.persist(session)
            self._state = RecorderState()

        result = StopResult(
            session_id=session.id,
            duration=session.total_duration,
            event_count=len(session.events),
            filepath=str(filepath),
        )
        log(
            f"Stopped recording: {session.id} ({result.event_count} events, {result.duration}ms)",
            session_id=session.id,
        )
        return result

    def get_status(self) -> RecorderState:
        """Snapshot of the recorder; never exposes the live session object."""
        with self._lock:
            if not self._state.is_recording:
                return RecorderState(is_recording=False, event_count=0)
            return RecorderState(
                is_recording=True,
                session_id=self._state.session_id,
                start_time=self._state.start_time,
                event_count=self._state.event_count,
            )

    def elapsed_ms(self) -> Optional[int]:
        start_time = self._state.start_time
        if not self._state.is_recording or start_time is None:
            return None
        return now_ms() - start_time
