"""Tests for companion messages and applying remote timer state."""

import json

import pytest

from pomosync.sync.companion import (
    CompanionMessageError, NullCompanionLink, decode_routines,
    decode_timer_state, encode_routines, encode_routines_request,
    encode_timer_state,
)
from pomosync.timer.engine import TimerPhase, TimerState
from pomosync.timer.routines import CLASSIC_POMODORO, DEEP_WORK, PRESETS
from pomosync.timer.snapshot import SnapshotError, TimerSnapshot

from helpers import SignalCollector


def _state(**overrides):
    data = {
        "timeRemaining": 200.0,
        "totalTime": 300.0,
        "phase": "shortBreak",
        "currentRound": 3,
        "totalRounds": 4,
        "routineName": "Classic Pomodoro",
        "isRunning": True,
        "workDuration": 1500.0,
        "shortBreakDuration": 300.0,
        "longBreakDuration": 1200.0,
        "timestamp": 1_600_000_000.0,
    }
    data.update(overrides)
    return data


# ═══════════════════════════════════════════════════════════════════════════
#  WIRE
# ═══════════════════════════════════════════════════════════════════════════


class TestMessages:

    def test_encode_wraps_in_envelope(self, engine):
        message = json.loads(encode_timer_state(engine.snapshot()))
        assert set(message) == {"timerState"}
        assert message["timerState"]["phase"] == "work"
        assert "timestamp" in message["timerState"]

    def test_decode_bytes_str_and_dict(self):
        raw = json.dumps({"timerState": _state()})
        for payload in (raw, raw.encode("utf-8"), json.loads(raw)):
            snap = decode_timer_state(payload)
            assert snap.phase == TimerPhase.SHORT_BREAK
            assert snap.timestamp == 1_600_000_000.0

    def test_decode_rejects_non_json(self):
        with pytest.raises(SnapshotError, match="JSON"):
            decode_timer_state(b"{not json")

    def test_decode_rejects_missing_envelope(self):
        with pytest.raises(SnapshotError, match="timerState"):
            decode_timer_state(json.dumps(_state()))

    def test_decode_rejects_bad_phase(self):
        with pytest.raises(SnapshotError):
            decode_timer_state({"timerState": _state(phase="siesta")})

    def test_null_link_is_unreachable(self):
        link = NullCompanionLink()
        assert link.is_reachable is False
        link.send(b"{}")  # dropped quietly


# ═══════════════════════════════════════════════════════════════════════════
#  APPLY REMOTE
# ═══════════════════════════════════════════════════════════════════════════


class TestApplyRemote:

    def test_running_remote_state_restarts_locally(self, engine, clock):
        engine.apply_remote(TimerSnapshot.from_dict(_state()))
        assert engine.state == TimerState.RUNNING
        assert engine.phase == TimerPhase.SHORT_BREAK
        assert engine.current_round == 3
        assert engine.time_remaining == 200.0
        assert engine.has_tick_source is True

    def test_deadline_from_remaining_not_timestamp(self, engine, clock):
        """Remaining time is trusted as-is; message age is not subtracted."""
        engine.apply_remote(TimerSnapshot.from_dict(_state(timestamp=clock.now - 50)))
        assert engine.deadline == pytest.approx(clock.now + 200)

    def test_local_countdown_paused_first(self, engine, clock):
        c = SignalCollector()
        engine.state_changed.connect(c)

        engine.start()
        old_deadline = engine.deadline
        engine.apply_remote(TimerSnapshot.from_dict(_state()))

        assert c.items == [TimerState.RUNNING, TimerState.PAUSED, TimerState.RUNNING]
        assert engine.deadline != old_deadline

    def test_paused_remote_state(self, engine):
        engine.start()
        engine.apply_remote(TimerSnapshot.from_dict(_state(isRunning=False)))
        assert engine.state == TimerState.PAUSED
        assert engine.has_tick_source is False
        assert engine.deadline is None
        assert engine.time_remaining == 200.0

    def test_untouched_remote_phase_is_idle(self, engine):
        engine.apply_remote(TimerSnapshot.from_dict(
            _state(isRunning=False, timeRemaining=300.0),
        ))
        assert engine.state == TimerState.IDLE
        assert engine.phase == TimerPhase.SHORT_BREAK

    def test_remote_routine_fields_applied(self, engine):
        engine.apply_remote(TimerSnapshot.from_dict(_state(
            routineName="Deep Work", totalRounds=3, currentRound=3,
            workDuration=3000.0, shortBreakDuration=600.0,
            longBreakDuration=1800.0, totalTime=600.0,
        )))
        assert engine.routine_name == "Deep Work"
        assert engine.total_rounds == 3
        assert engine.total_time == 600.0

        engine.skip()
        assert engine.phase == TimerPhase.WORK
        assert engine.current_round == 3

    def test_running_state_with_no_time_left_is_refused(self, engine, clock):
        completed = SignalCollector()
        engine.phase_complete.connect(completed)
        before = engine.snapshot()

        applied = engine.apply_remote(TimerSnapshot.from_dict(_state(timeRemaining=0.0)))

        assert applied is False
        assert engine.snapshot() == before
        assert engine.state == TimerState.IDLE
        engine._on_tick()
        assert completed.items == []

    def test_finished_state_that_is_not_running_is_applied(self, engine):
        assert engine.apply_remote(TimerSnapshot.from_dict(
            _state(isRunning=False, timeRemaining=0.0),
        )) is True
        assert engine.state == TimerState.PAUSED
        assert engine.time_remaining == 0.0


# ═══════════════════════════════════════════════════════════════════════════
#  ROUTINES
# ═══════════════════════════════════════════════════════════════════════════


class TestRoutineMessages:

    def test_encode_routines(self):
        message = json.loads(encode_routines([CLASSIC_POMODORO, DEEP_WORK]))
        assert set(message) == {"routines"}
        first = message["routines"][0]
        assert first == {
            "name": "Classic Pomodoro",
            "workDuration": 25,
            "shortBreakDuration": 5,
            "longBreakDuration": 20,
            "roundsBeforeLongBreak": 4,
            "totalRounds": 4,
        }
        assert message["routines"][1]["name"] == "Deep Work"

    def test_decode_routines_from_encoded(self):
        routines = decode_routines(encode_routines(PRESETS))
        assert routines == list(PRESETS)

    def test_request_message(self):
        assert json.loads(encode_routines_request()) == {"requestRoutines": True}

    def test_decode_rejects_missing_list(self):
        with pytest.raises(CompanionMessageError, match="routines"):
            decode_routines({"routines": "Deep Work"})

    def test_decode_rejects_nameless_routine(self):
        with pytest.raises(CompanionMessageError, match="no name"):
            decode_routines({"routines": [{"workDuration": 25}]})

    @pytest.mark.parametrize("value", [25.5, "25", True, None])
    def test_decode_rejects_non_integer_field(self, value):
        item = json.loads(encode_routines([CLASSIC_POMODORO]))["routines"][0]
        item["workDuration"] = value
        with pytest.raises(CompanionMessageError, match="workDuration"):
            decode_routines({"routines": [item]})

    def test_decode_rejects_zero_duration(self):
        item = json.loads(encode_routines([CLASSIC_POMODORO]))["routines"][0]
        item["totalRounds"] = 0
        with pytest.raises(CompanionMessageError, match="total_rounds"):
            decode_routines({"routines": [item]})

    def test_one_bad_entry_rejects_the_list(self, engine):
        items = json.loads(encode_routines(PRESETS))["routines"]
        items[-1]["shortBreakDuration"] = -5
        with pytest.raises(CompanionMessageError):
            decode_routines({"routines": items})
        assert engine.time_remaining == 3000.0
