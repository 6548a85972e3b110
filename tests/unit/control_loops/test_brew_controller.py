import logging
from unittest.mock import MagicMock

import pytest
from conftest import START, RampSource, ScriptedSource

from brewctl.control_loops.brew_controller import BrewController
from brewctl.control_loops.recovery import RecoveryHandler
from brewctl.domain.exceptions import SensorTransportFault
from brewctl.enums.brew import BrewStep, ExitCode, SessionStatus


@pytest.fixture
def exit_fn():
    return MagicMock()


@pytest.fixture
def make_controller(session_repo, writer, actuators, config, clock, valve, exit_fn):
    def _make(source):
        recovery = RecoveryHandler(writer, actuators, exit_fn=exit_fn)
        return BrewController(
            session_repo,
            writer,
            actuators,
            recovery,
            source,
            config,
            valve=valve,
            clock=clock,
            sleep=clock.sleep,
        )

    return _make


class TestBrewController:
    def test_session_not_found(self, make_controller, ramp_source, heat_line, pump_line, exit_fn):
        controller = make_controller(ramp_source)

        assert controller.run("missing") == ExitCode.SESSION_NOT_FOUND

        assert heat_line.writes == []
        assert pump_line.writes == []
        assert ramp_source.reads == 0
        exit_fn.assert_called_once_with(1)

    def test_complete_session_not_actuated(
        self, make_controller, ramp_source, seed_session, session_repo, heat_line, pump_line, exit_fn
    ):
        seed_session("1", status=SessionStatus.COMPLETE, step=BrewStep.DONE)
        controller = make_controller(ramp_source)

        assert controller.run("1") == ExitCode.OK

        assert controller.machine is None
        assert heat_line.writes == []
        assert pump_line.writes == []
        assert session_repo.load("1").status == SessionStatus.COMPLETE
        exit_fn.assert_called_once_with(0)

    def test_attach_starts_pump_and_runs(self, make_controller, ramp_source, seed_session, session_repo, pump_line):
        seed_session("2", boil=None, step=BrewStep.BOIL)
        controller = make_controller(ramp_source)

        assert controller.run("2") == ExitCode.OK

        stored = session_repo.load("2")
        assert stored.status == SessionStatus.COMPLETE
        assert stored.last_started == START
        # pump on (active low) at attach, off again on shutdown
        assert pump_line.writes == [0, 1]
        assert ramp_source.closed is True

    def test_full_session(self, make_controller, clock, seed_session, session_repo, heat_line, pump_line):
        seed_session("3", mash=[(66.0, 5.0)], boil=(100.0, 5.0))
        controller = make_controller(RampSource(clock))

        assert controller.run("3") == ExitCode.OK

        stored = session_repo.load("3")
        assert stored.status == SessionStatus.COMPLETE
        assert stored.step == BrewStep.DONE
        assert heat_line.level == 0
        assert pump_line.level == 1

    def test_sensor_failure_stops_session(self, make_controller, clock, seed_session, session_repo, actuators, exit_fn):
        seed_session("4", mash=[(66.0, 60.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [40.0, SensorTransportFault("Cannot connect")])
        controller = make_controller(source)

        assert controller.run("4") == ExitCode.SENSOR_FAILURE

        stored = session_repo.load("4")
        assert stored.status == SessionStatus.STOPPED
        assert stored.step == BrewStep.MASH
        assert actuators.heat_is_on() is False
        assert actuators.pump_is_on() is False
        exit_fn.assert_called_once_with(3)

    def test_sensor_failure_logged_with_step_and_target(self, make_controller, clock, seed_session, caplog):
        seed_session("ctx-4", mash=[(66.0, 60.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [40.0, SensorTransportFault("Cannot connect")])

        with caplog.at_level(logging.ERROR, logger="brewctl.control_loops.brew_controller"):
            make_controller(source).run("ctx-4")

        line = next(r.getMessage() for r in caplog.records if "Temperature service failed" in r.getMessage())
        assert "session ctx-4" in line
        assert "step 3" in line
        assert "target 66.0" in line
        assert "Cannot connect" in line

    def test_unexpected_error_is_unrecoverable(self, make_controller, clock, seed_session, session_repo, exit_fn):
        seed_session("5", mash=[(66.0, 60.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [ZeroDivisionError("bug")])
        controller = make_controller(source)

        assert controller.run("5") == ExitCode.UNRECOVERABLE

        assert session_repo.load("5").status == SessionStatus.STOPPED
        exit_fn.assert_called_once_with(4)
