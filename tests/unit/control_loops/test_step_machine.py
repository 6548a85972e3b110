"""
StepMachine Tests
=================
Step transitions, control cycles against a kettle model, resumption from a
persisted session and the persistence barrier when the target is reached.
"""

import dataclasses
import logging
import math
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from conftest import START, FullPower, RampSource, ScriptedSource, StopScript

from brewctl.control_loops.persistence import SessionWriter
from brewctl.control_loops.step_machine import ControlCycle
from brewctl.domain.exceptions import RepositoryError, SensorTransportFault
from brewctl.domain.session import MashStep, TempLogEntry
from brewctl.enums.brew import BrewStep, SessionStatus
from brewctl.hardware.sensors import SimulatedTemperatureSource


class TestFullRun:
    def test_runs_every_step_in_order(self, seed_session, make_machine, ramp_source, session_repo, valve, heat_line):
        session = seed_session("1", mash=[(67.0, 10.0)], boil=(100.0, 5.0))
        machine = make_machine(session, ramp_source)

        machine.run()

        assert ramp_source.targets == [66.0, 67.0, 100.0]
        assert valve.moves == ["mash tun", "boil kettle"]
        assert heat_line.level == 0

        stored = session_repo.load("1")
        assert stored.status == SessionStatus.COMPLETE
        assert stored.current_step == BrewStep.DONE
        assert stored.mash_steps[0].is_complete
        assert stored.boil.is_complete

    def test_pre_heat_skipped_without_mash_steps(self, seed_session, make_machine, ramp_source, session_repo):
        session = seed_session("2", mash=[], boil=(100.0, 1.0))
        make_machine(session, ramp_source).run()

        assert ramp_source.targets == [100.0]
        assert session_repo.load("2").status == SessionStatus.COMPLETE

    def test_missing_boil_completes_session(self, seed_session, make_machine, ramp_source, session_repo):
        session = seed_session("3", mash=[(67.0, 60.0)], boil=None, step=BrewStep.BOIL)
        machine = make_machine(session, ramp_source)
        machine.run()

        assert ramp_source.reads == 0
        assert machine.cycles_run == []
        stored = session_repo.load("3")
        assert stored.status == SessionStatus.COMPLETE
        assert stored.step == BrewStep.DONE

    def test_mash_steps_run_in_sequence(self, seed_session, make_machine, ramp_source):
        session = seed_session("4", mash=[(52.0, 5.0), (67.0, 5.0), (76.0, 5.0)], boil=None, step=BrewStep.MASH)
        machine = make_machine(session, ramp_source)
        machine.run()

        assert ramp_source.targets == [52.0, 67.0, 76.0]
        ends = [step.end_time for step in session.mash_steps]
        starts = [step.start_time for step in session.mash_steps]
        assert ends[0] <= starts[1] and ends[1] <= starts[2]


class RecordingWriter(SessionWriter):
    """Records step and heat level at every durable save."""

    def __init__(self, repository, heat_line):
        super().__init__(repository, retry_attempts=1, retry_delay_seconds=0, sleep=lambda _s: None)
        self.heat_line = heat_line
        self.barriers = []

    def save_durable(self, session, reason):
        self.barriers.append((reason, int(session.step), self.heat_line.level))
        super().save_durable(session, reason)


class TestMashScenario:
    """Kettle ramps 20 -> 66 C in 5 C steps, then holds 60 minutes."""

    @pytest.fixture
    def outcome(self, seed_session, make_machine, clock, session_repo, heat_line):
        session = seed_session("9", mash=[(66.0, 60.0)], boil=None, step=BrewStep.MASH)
        source = RampSource(clock, start_c=20.0, step_c=5.0, seconds_per_read=5.0)
        writer = RecordingWriter(session_repo, heat_line)
        machine = make_machine(session, source, writer=writer)
        machine.run()
        return session, writer, machine, session_repo.load("9")

    def test_hold_starts_on_first_reading_at_target(self, outcome):
        session, writer, machine, stored = outcome
        # 25, 30, ... 65, 66: ten reads of 5 s
        assert stored.mash_steps[0].start_time == START + timedelta(seconds=50)

    def test_hold_lasts_sixty_minutes(self, outcome):
        session, writer, machine, stored = outcome
        step = stored.mash_steps[0]
        assert step.end_time - step.start_time == timedelta(minutes=60)

    def test_heat_off_then_step_advanced(self, outcome):
        session, writer, machine, stored = outcome
        reasons = [reason for reason, _, _ in writer.barriers]
        done = reasons.index("Mash step 1 complete.")
        assert writer.barriers[done][1:] == (BrewStep.MASH, 0)
        assert writer.barriers[done + 1] == ("All mash steps complete.", BrewStep.TRANSFER_TO_BOIL_KETTLE, 0)

    def test_hit_persisted_first(self, outcome):
        session, writer, machine, stored = outcome
        assert writer.barriers[0][0] == "Pid hit temp start time (mash step 1)."

    def test_temperature_log_spacing(self, outcome):
        session, writer, machine, stored = outcome
        times = [entry.timestamp for entry in stored.mash_temp_data]
        assert len(times) > 200
        assert all(b - a >= timedelta(seconds=15) for a, b in zip(times, times[1:]))

    def test_readings_logged_in_both_units(self, outcome):
        session, writer, machine, stored = outcome
        last = stored.mash_temp_data[-1]
        assert last.temp_c == 66.0
        assert last.temp_f == 150.8

    def test_heat_left_off_and_pump_untouched(self, outcome, heat_line, pump_line):
        assert heat_line.level == 0
        assert pump_line.writes == []

    def test_session_completed(self, outcome):
        session, writer, machine, stored = outcome
        assert stored.status == SessionStatus.COMPLETE
        assert len(machine.cycles_run) == 1
        assert machine.cycles_run[0].has_hit_temp


class TestResume:
    def test_resumes_started_mash_step(self, seed_session, make_machine, clock, session_repo):
        first_start = START - timedelta(minutes=40)
        second_start = START - timedelta(minutes=10)
        session = seed_session(
            "5",
            mash=[
                MashStep(52.0, 15.0, first_start, first_start + timedelta(minutes=15)),
                MashStep(65.0, 30.0, second_start),
            ],
            boil=None,
            step=BrewStep.MASH,
            status=SessionStatus.STOPPED,
        )
        source = RampSource(clock, start_c=65.0)
        make_machine(session, source).run()

        stored = session_repo.load("5")
        assert source.targets == [65.0]
        assert stored.mash_steps[0].end_time == first_start + timedelta(minutes=15)
        assert stored.mash_steps[1].start_time == second_start
        assert stored.mash_steps[1].end_time == second_start + timedelta(minutes=30)

    def test_finished_boil_not_rerun(self, seed_session, make_machine, ramp_source, session_repo):
        session = seed_session("6", boil=(100.0, 60.0), step=BrewStep.BOIL)
        session.boil.start_time = START - timedelta(minutes=70)
        session.boil.end_time = START - timedelta(minutes=10)
        make_machine(session, ramp_source).run()
        assert ramp_source.reads == 0
        assert session_repo.load("6").status == SessionStatus.COMPLETE

    def test_log_spacing_counts_from_last_persisted_entry(self, seed_session, make_machine, clock):
        session = seed_session(
            "7",
            mash=[(65.0, 1.0)],
            boil=None,
            step=BrewStep.MASH,
            mash_temp_data=[TempLogEntry.from_celsius(START - timedelta(seconds=5), 64.0)],
        )
        make_machine(session, RampSource(clock, start_c=65.0)).run()

        new_entries = session.mash_temp_data[1:]
        assert new_entries[0].timestamp == START + timedelta(seconds=10)


class TestControlCycle:
    def test_no_heat_before_first_valid_reading(self, seed_session, make_machine, clock, heat_line):
        session = seed_session("30", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [math.nan, 400.0, 0.0, StopScript()])
        machine = make_machine(session, source, pid=FullPower())

        with pytest.raises(StopScript):
            machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))
        assert heat_line.writes == []

    def test_full_power_switches_heat_on(self, seed_session, make_machine, clock, heat_line):
        session = seed_session("31", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [math.nan, 40.0, 41.0, StopScript()])
        machine = make_machine(session, source, pid=FullPower())

        with pytest.raises(StopScript):
            machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))
        assert heat_line.writes == [1]
        assert session.mash_steps[0].start_time is None

    def test_sensor_faults_logged_with_session_context(self, seed_session, make_machine, clock, caplog):
        session = seed_session("ctx-77", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [60.0, 95.0, 400.0, StopScript()])
        machine = make_machine(session, source, pid=FullPower())

        with caplog.at_level(logging.WARNING, logger="brewctl.control_loops.step_machine"):
            with pytest.raises(StopScript):
                machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))

        faults = [r.getMessage() for r in caplog.records if "error!" in r.getMessage()]
        assert len(faults) == 2
        assert "Temp jump error! Read 95.0" in faults[0]
        assert "Temp range error! Read 400.0" in faults[1]
        for line in faults:
            assert line.startswith("Session ctx-77, step 3, target 67.0:")

    def test_hit_is_persisted_before_holding(self, seed_session, make_machine, clock, session_repo):
        session = seed_session("32", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [66.0, 67.0, StopScript()])
        machine = make_machine(session, source)

        with pytest.raises(StopScript):
            machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))
        assert session_repo.load("32").mash_steps[0].start_time == START + timedelta(seconds=10)

    def test_barrier_failure_propagates(self, seed_session, make_machine, clock, config):
        session = seed_session("33", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        repo = MagicMock()
        repo.save.side_effect = RepositoryError("disk full")
        writer = SessionWriter(repo, retry_attempts=2, retry_delay_seconds=0, sleep=lambda _s: None)
        machine = make_machine(session, ScriptedSource(clock, [67.0]), writer=writer)

        with pytest.raises(RepositoryError):
            machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))

    def test_transport_fault_stops_cycle(self, seed_session, make_machine, clock):
        session = seed_session("34", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        source = ScriptedSource(clock, [60.0, SensorTransportFault("refused")])
        with pytest.raises(SensorTransportFault):
            make_machine(session, source).run()

    def test_pacing_sleeps_remaining_cycle_time(self, seed_session, make_machine, clock, config):
        session = seed_session("35", mash=[(67.0, 5.0)], step=BrewStep.MASH)
        paced = dataclasses.replace(config, min_cycle_seconds=1.0)
        source = ScriptedSource(clock, [60.0, 61.0, StopScript()], seconds_per_read=0.25)
        machine = make_machine(session, source, config=paced)

        with pytest.raises(StopScript):
            machine.run_cycle(ControlCycle("mash step 1", 67.0, 5.0, session.mash_steps[0]))
        assert clock.sleeps == [0.75, 0.75]


class TestSimulation:
    def test_simulated_session_uses_short_holds(self, seed_session, make_machine, config, session_repo):
        paced = dataclasses.replace(config, min_cycle_seconds=0.5)
        session = seed_session("40", mash=[(65.0, 60.0)], boil=(100.0, 90.0))
        machine = make_machine(session, SimulatedTemperatureSource(20.0, 5.0), simulate=True, config=paced)
        machine.run()

        stored = session_repo.load("40")
        assert stored.status == SessionStatus.COMPLETE
        for step in (stored.mash_steps[0], stored.boil):
            assert step.end_time - step.start_time == timedelta(minutes=0.25)
