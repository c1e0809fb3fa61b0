from typing import Dict, FrozenSet

VERSION = "0.3.0"

# Event types understood by the replay engine
ACTION_TYPES: FrozenSet[str] = frozenset({
    "click", "mousemove", "input", "keypress", "scroll", "pageLoad",
})

# Viewport assumed until the first event reports the real one
DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1920, "height": 1080}
# Used for page loads when the browser runs without a fixed viewport
FALLBACK_VIEWPORT: Dict[str, int] = {"width": 1280, "height": 720}

# Replay defaults (milliseconds)
DEFAULT_SPEED_MULTIPLIER = 1.0
DEFAULT_MIN_DURATION = 0
DEFAULT_MAX_DURATION = 10000
URL_WAIT_TIMEOUT_MS = 30000

# Timeouts (in seconds)
DEFAULT_NAVIGATION_TIMEOUT = 30

# Capture probe
DEFAULT_MOUSE_MOVE_THROTTLE = 100
SCROLL_THROTTLE_MS = 500

# Storage
INDEX_FILENAME = "index.json"
SCREENSHOT_RETENTION_SECONDS = 24 * 60 * 60

# Resource Limits
MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5
