"""Companion sync package."""

from .companion import (
    CompanionLink,
    NullCompanionLink,
    CompanionMessageError,
    load_message,
    encode_timer_state,
    decode_timer_state,
    encode_routines,
    encode_routines_request,
    decode_routines,
    ENVELOPE_KEY,
    ROUTINES_KEY,
    REQUEST_ROUTINES_KEY,
)

__all__ = [
    "CompanionLink",
    "NullCompanionLink",
    "CompanionMessageError",
    "load_message",
    "encode_timer_state",
    "decode_timer_state",
    "encode_routines",
    "encode_routines_request",
    "decode_routines",
    "ENVELOPE_KEY",
    "ROUTINES_KEY",
    "REQUEST_ROUTINES_KEY",
]
