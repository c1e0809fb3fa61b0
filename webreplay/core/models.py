from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from webreplay.core.constants import (
    DEFAULT_VIEWPORT,
    DEFAULT_SPEED_MULTIPLIER,
    DEFAULT_MIN_DURATION,
    DEFAULT_MAX_DURATION,
)


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on disk and on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Viewport(CamelModel):
    width: int
    height: int


class RecordedAction(CamelModel):
    """One observed or replayable step.

    ``type`` is kept as a free string: unknown types are stored as sent by
    the capture probe and treated as no-ops on replay.
    """

    type: str
    timestamp: int = 0
    duration: int = 0
    x: Optional[float] = None
    y: Optional[float] = None
    value: Optional[str] = None
    key: Optional[str] = None
    scroll_x: Optional[float] = None
    scroll_y: Optional[float] = None
    url: str = ""
    viewport: Optional[Viewport] = None


class SessionMetadata(CamelModel):
    event_count: int = 0
    url_changes: int = 0
    average_action_duration: int = 0


class RecordingSession(CamelModel):
    id: str
    name: Optional[str] = None
    start_url: str = ""
    start_time: int
    end_time: Optional[int] = None
    total_duration: Optional[int] = None
    events: List[RecordedAction] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=lambda: Viewport(**DEFAULT_VIEWPORT))
    metadata: Optional[SessionMetadata] = None


class IndexEntry(CamelModel):
    id: str
    name: Optional[str] = None
    start_url: str = ""
    start_time: int
    duration: Optional[int] = None
    event_count: int = 0
    filepath: str


class RecordingIndex(CamelModel):
    recordings: List[IndexEntry] = Field(default_factory=list)
    last_updated: int = 0


class RecorderState(CamelModel):
    is_recording: bool = False
    session_id: Optional[str] = None
    start_time: Optional[int] = None
    event_count: int = 0
    current_session: Optional[RecordingSession] = None


class StartResult(CamelModel):
    session_id: str
    start_time: int


class StopResult(CamelModel):
    session_id: str
    duration: int
    event_count: int
    filepath: str


class ReplayOptions(CamelModel):
    speed_multiplier: float = DEFAULT_SPEED_MULTIPLIER
    min_duration: float = DEFAULT_MIN_DURATION
    max_duration: float = DEFAULT_MAX_DURATION
    skip_mouse_moves: bool = False
    screenshot: bool = False
    stop_on_error: bool = True


class ReplayError(CamelModel):
    event_index: int
    event: RecordedAction
    error: str


class ReplayResult(CamelModel):
    success: bool
    session_id: str
    events_executed: int = 0
    events_failed: int = 0
    total_duration: Optional[int] = None
    actual_duration: Optional[int] = None
    screenshots: List[str] = Field(default_factory=list)
    errors: Optional[List[ReplayError]] = None
    message: str = ""
