import json
from typing import Optional

from webreplay.core.constants import DEFAULT_MOUSE_MOVE_THROTTLE, SCROLL_THROTTLE_MS

# Placeholders are substituted by get_probe_script().
_PROBE_TEMPLATE = """
(() => {
    if (typeof window === 'undefined') return;

    // Shared with any earlier injection on this page; every start resets it.
    window.__recorderClock = {
        sessionStart: /*{{SESSION_START}}*/ Date.now(),
        lastAction: /*{{LAST_ACTION}}*/ 0
    };
    window.__recorderStatus = true;
    if (window.__recorderInjected) return;
    window.__recorderInjected = true;

    const SERVER_URL = '/*{{SERVER_URL}}*/';
    const RECORD_MOUSE_MOVES = /*{{RECORD_MOUSE_MOVES}}*/ false;
    const MOUSE_MOVE_THROTTLE = /*{{MOUSE_MOVE_THROTTLE}}*/ 100;
    const SCROLL_THROTTLE = /*{{SCROLL_THROTTLE}}*/ 500;

    let mouseMoveTimer = null;
    let scrollTimer = null;

    function viewport() {
        return { width: window.innerWidth, height: window.innerHeight };
    }

    function send(event) {
        fetch(SERVER_URL + '/recorder/event', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(event)
        }).catch(err => console.error('Failed to send recording event:', err));
    }

    function record(type, data) {
        if (window.__recorderStatus !== true) return;
        const clock = window.__recorderClock;
        const now = Date.now();
        send(Object.assign({
            type: type,
            timestamp: now - clock.sessionStart,
            duration: clock.lastAction ? now - clock.lastAction : 0,
            url: window.location.href,
            viewport: viewport()
        }, data || {}));
        clock.lastAction = now;
    }

    document.addEventListener('click', (e) => {
        record('click', { x: e.clientX, y: e.clientY });
    }, true);

    if (RECORD_MOUSE_MOVES) {
        document.addEventListener('mousemove', (e) => {
            if (mouseMoveTimer) return;
            mouseMoveTimer = setTimeout(() => {
                record('mousemove', { x: e.clientX, y: e.clientY });
                mouseMoveTimer = null;
            }, MOUSE_MOVE_THROTTLE);
        }, true);
    }

    document.addEventListener('keydown', (e) => {
        if (['Control', 'Alt', 'Shift', 'Meta'].includes(e.key)) return;
        record('keypress', { key: e.key, value: e.key.length === 1 ? e.key : '' });
    }, true);

    window.addEventListener('scroll', () => {
        if (scrollTimer) return;
        scrollTimer = setTimeout(() => {
            record('scroll', { scrollX: window.scrollX, scrollY: window.scrollY });
            scrollTimer = null;
        }, SCROLL_THROTTLE);
    }, true);

    console.log('[Recorder] Client script injected and listening for events');
})();
"""

STOP_SCRIPT = "() => { window.__recorderStatus = false; }"


def get_probe_script(
    server_url: str,
    record_mouse_moves: bool = False,
    mouse_move_throttle: int = DEFAULT_MOUSE_MOVE_THROTTLE,
    session_start: Optional[int] = None,
    last_action: Optional[int] = None,
) -> str:
    """Render the in-page capture script.

    ``session_start`` and ``last_action`` are epoch milliseconds; passing the
    recorder's values keeps timestamps continuous when the script is
    re-injected after a navigation. Injecting again into a page that already
    listens only replaces the clock, so a new recording starts from zero.
    """
    replacements = {
        "'/*{{SERVER_URL}}*/'": json.dumps(server_url.rstrip("/")),
        "/*{{RECORD_MOUSE_MOVES}}*/ false": "true" if record_mouse_moves else "false",
        "/*{{MOUSE_MOVE_THROTTLE}}*/ 100": str(int(mouse_move_throttle)),
        "/*{{SCROLL_THROTTLE}}*/ 500": str(SCROLL_THROTTLE_MS),
        "/*{{SESSION_START}}*/ Date.now()": str(session_start) if session_start else "Date.now()",
        "/*{{LAST_ACTION}}*/ 0": str(last_action) if last_action else "0",
    }
    script = _PROBE_TEMPLATE
    for placeholder, value in replacements.items():
        script = script.replace(placeholder, value)
    return script
