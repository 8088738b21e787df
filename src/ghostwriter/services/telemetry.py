"""In-process telemetry bus for tool executions and notices.

Listeners subscribe to one event name, or to :data:`ALL_EVENTS` to receive
every event. Each listener gets its own copy of the payload.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

LOGGER = logging.getLogger(__name__)

ALL_EVENTS = "*"

Listener = Callable[[dict[str, Any]], None]

_EVENT_LISTENERS: dict[str, list[Listener]] = {}


def register_event_listener(event_name: str, callback: Listener) -> None:
    """Subscribe ``callback`` to ``event_name`` (or :data:`ALL_EVENTS`)."""

    if not event_name or callback is None:
        return
    listeners = _EVENT_LISTENERS.setdefault(event_name, [])
    if callback not in listeners:
        listeners.append(callback)


def unregister_event_listener(event_name: str, callback: Listener) -> None:
    listeners = _EVENT_LISTENERS.get(event_name)
    if not listeners or callback not in listeners:
        return
    listeners.remove(callback)
    if not listeners:
        del _EVENT_LISTENERS[event_name]


def _listeners_for(event_name: str) -> list[Listener]:
    specific = _EVENT_LISTENERS.get(event_name, [])
    wildcard = [cb for cb in _EVENT_LISTENERS.get(ALL_EVENTS, []) if cb not in specific]
    return [*specific, *wildcard]


def emit(event_name: str, payload: Mapping[str, Any] | None = None) -> None:
    """Deliver ``payload`` (plus an ``event`` key) to every matching listener."""

    if not event_name:
        return
    event_payload: dict[str, Any] = {"event": event_name, **(payload or {})}
    for callback in _listeners_for(event_name):
        try:
            callback(dict(event_payload))
        except Exception:
            LOGGER.debug("Telemetry listener %r failed for %s", callback, event_name, exc_info=True)
    LOGGER.debug("Telemetry %s: %s", event_name, event_payload)


class BusTelemetry:
    """Adapter exposing :func:`emit` through the ``TelemetryEmitter`` protocol."""

    def emit(self, event_name: str, payload: Mapping[str, Any]) -> None:
        emit(event_name, payload)


__all__ = [
    "ALL_EVENTS",
    "BusTelemetry",
    "Listener",
    "emit",
    "register_event_listener",
    "unregister_event_listener",
]
