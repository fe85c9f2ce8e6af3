"""Companion-device messages.

Every message is a JSON object; its keys say what it carries:

``timerState``
    The snapshot wire mapping plus a ``timestamp``.
``routines``
    A list of routine descriptors (name + minute/round integers).
``requestRoutines``
    ``true`` when the sender wants our routines.

One message may carry several keys.  The transport itself (Bluetooth,
a socket, a test double) sits behind ``CompanionLink`` and is handed to
the host, which never reaches for a global connection.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from ..timer.routines import RoutineConfiguration
from ..timer.snapshot import SnapshotError, TimerSnapshot

logger = logging.getLogger(__name__)

ENVELOPE_KEY = "timerState"
ROUTINES_KEY = "routines"
REQUEST_ROUTINES_KEY = "requestRoutines"

_ROUTINE_FIELDS = {
    "workDuration": "work_minutes",
    "shortBreakDuration": "short_break_minutes",
    "longBreakDuration": "long_break_minutes",
    "roundsBeforeLongBreak": "rounds_before_long_break",
    "totalRounds": "total_rounds",
}


class CompanionMessageError(SnapshotError):
    """Raised for a companion message that cannot be applied."""


# ── framing ───────────────────────────────────────────────────────────────


def load_message(payload: bytes | str | dict[str, Any]) -> dict[str, Any]:
    """Turn raw bytes/text (or an already-parsed dict) into a message dict."""
    if isinstance(payload, (bytes, str)):
        try:
            message = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CompanionMessageError(f"companion message is not JSON: {exc}") from exc
    else:
        message = payload

    if not isinstance(message, dict):
        raise CompanionMessageError("companion message is not a JSON object")
    return message


def _dump(message: dict[str, Any]) -> bytes:
    return json.dumps(message).encode("utf-8")


# ── timer state ───────────────────────────────────────────────────────────


def encode_timer_state(snapshot: TimerSnapshot) -> bytes:
    return _dump({ENVELOPE_KEY: snapshot.to_dict()})


def decode_timer_state(payload: bytes | str | dict[str, Any]) -> TimerSnapshot:
    """Parse a companion message into a snapshot.

    Raises ``SnapshotError`` if the payload is not JSON, has no
    ``timerState`` object, or the state itself does not validate.
    """
    message = load_message(payload)
    if not isinstance(message.get(ENVELOPE_KEY), dict):
        raise CompanionMessageError(f"companion message has no {ENVELOPE_KEY!r} object")
    return TimerSnapshot.from_dict(message[ENVELOPE_KEY])


# ── routines ──────────────────────────────────────────────────────────────


def encode_routines(routines: Iterable[RoutineConfiguration]) -> bytes:
    items = []
    for routine in routines:
        item: dict[str, Any] = {"name": routine.name}
        for wire, attr in _ROUTINE_FIELDS.items():
            item[wire] = getattr(routine, attr)
        items.append(item)
    return _dump({ROUTINES_KEY: items})


def encode_routines_request() -> bytes:
    return _dump({REQUEST_ROUTINES_KEY: True})


def decode_routines(payload: bytes | str | dict[str, Any]) -> list[RoutineConfiguration]:
    """Parse the ``routines`` list of a companion message.

    The whole list is rejected if any entry is malformed.
    """
    message = load_message(payload)
    items = message.get(ROUTINES_KEY)
    if not isinstance(items, list):
        raise CompanionMessageError(f"companion message has no {ROUTINES_KEY!r} list")

    routines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise CompanionMessageError(f"routine #{index} has no name")
        kwargs: dict[str, Any] = {"name": item["name"]}
        for wire, attr in _ROUTINE_FIELDS.items():
            value = item.get(wire)
            if isinstance(value, bool) or not isinstance(value, int):
                raise CompanionMessageError(
                    f"routine {item['name']!r}: {wire} must be an integer, got {value!r}"
                )
            kwargs[attr] = value
        try:
            routines.append(RoutineConfiguration(**kwargs))
        except ValueError as exc:
            raise CompanionMessageError(f"routine {item['name']!r}: {exc}") from exc
    return routines


# ── transport ─────────────────────────────────────────────────────────────


class CompanionLink:
    """Transport to the paired device.  Subclass and override ``send``."""

    @property
    def is_reachable(self) -> bool:
        return False

    def send(self, payload: bytes) -> None:
        raise NotImplementedError


class NullCompanionLink(CompanionLink):
    """Used when no companion device is paired."""

    def send(self, payload: bytes) -> None:
        logger.debug("No companion paired; dropping %d byte message", len(payload))
