from enum import Enum


class RecorderStatus(Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"


class RecorderError(Exception):
    """Base class for every failure surfaced by the recording engine.

    ``kind`` is a stable tag the transport layer reports to clients,
    ``status_code`` the HTTP status it maps to.
    """

    kind = "recorder_error"
    status_code = 500


class AlreadyRecordingError(RecorderError):
    kind = "already_recording"
    status_code = 409

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        super().__init__(f"Already recording ({session_id}). Stop current session first.")


class NotRecordingError(RecorderError):
    kind = "not_recording"
    status_code = 409

    def __init__(self):
        super().__init__("No active recording session")


class SessionNotFoundError(RecorderError):
    kind = "session_not_found"
    status_code = 404

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Recording not found: {session_id}")


class NavigationError(RecorderError):
    kind = "navigation_failure"
    status_code = 502


class PersistenceError(RecorderError):
    kind = "persistence_failure"
    status_code = 500


class BrowserNotReadyError(RecorderError):
    kind = "browser_not_ready"
    status_code = 400
