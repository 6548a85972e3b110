"""
brewctl command line entry point.

Usage:
    brewctl <session_id>
    brewctl <session_id> --simulate

Runs one brew session to completion on the rig. ``--simulate`` replaces the
temperature service with a ramping synthetic reading and shortens every hold.
Exit codes are listed in ``brewctl.enums.brew.ExitCode``.
"""

import argparse
import contextlib
import logging
import signal
import sys

from brewctl import __version__
from brewctl.config import AppConfig, load_config, setup_logging
from brewctl.control_loops import BrewController, RecoveryHandler, SessionWriter
from brewctl.domain.exceptions import BrewCtlError
from brewctl.enums.brew import ExitCode
from brewctl.hardware.actuators import ActuatorFactory
from brewctl.hardware.sensors import (
    RetryingTemperatureSource,
    SimulatedTemperatureSource,
    TemperatureServiceClient,
    TemperatureSource,
)
from infrastructure.database.repositories.brew_sessions import BrewSessionRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger("brewctl")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="brewctl", description="Run a brew session on the brewing rig.")
    parser.add_argument("session_id", help="Identifier of the brew session to run")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use a simulated temperature ramp and short holds instead of the temperature service",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_temperature_source(config: AppConfig, simulate: bool) -> TemperatureSource:
    if simulate:
        logger.info("[SIMULATION MODE] Temperatures are simulated.")
        return SimulatedTemperatureSource(config.simulation_start_temp_c, config.simulation_ramp_step_c)
    client = TemperatureServiceClient(config.sensor_url, timeout=config.sensor_timeout_seconds)
    return RetryingTemperatureSource(
        client,
        attempts=config.sensor_retry_attempts,
        backoff_seconds=config.sensor_retry_backoff_seconds,
    )


def install_traps(recovery: RecoveryHandler) -> dict:
    """
    Route SIGINT and SIGTERM to the recovery path.

    Faults inside the control loop are trapped by ``BrewController.run``.
    """
    previous = {}

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        recovery.shutdown(sig_name, ExitCode.OK)

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(OSError, ValueError):
            previous[sig] = signal.signal(sig, _signal_handler)
    return previous


def restore_traps(previous: dict) -> None:
    for sig, handler in previous.items():
        with contextlib.suppress(OSError, ValueError, TypeError):
            signal.signal(sig, handler)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except BrewCtlError as e:
        print(f"brewctl: {e}", file=sys.stderr)
        return int(ExitCode.UNRECOVERABLE)
    setup_logging(debug=config.DEBUG, log_dir=config.log_dir, level=config.log_level)

    db_handler = SQLiteDatabaseHandler(config.database_path)
    try:
        db_handler.init_db()
        actuators = ActuatorFactory.create(config)
    except BrewCtlError as e:
        logger.error("Startup failed: %s", e)
        db_handler.close_db()
        return int(ExitCode.UNRECOVERABLE)
    except Exception:
        logger.exception("Startup failed")
        db_handler.close_db()
        return int(ExitCode.UNRECOVERABLE)

    repository = BrewSessionRepository(db_handler)
    writer = SessionWriter(
        repository,
        retry_attempts=config.persist_retry_attempts,
        retry_delay_seconds=config.persist_retry_delay_seconds,
    )
    recovery = RecoveryHandler(writer, actuators)
    controller = BrewController(
        repository,
        writer,
        actuators,
        recovery,
        build_temperature_source(config, args.simulate),
        config,
        simulate=args.simulate,
    )

    previous = install_traps(recovery)
    try:
        return controller.run(args.session_id)
    finally:
        restore_traps(previous)
        db_handler.close_db()


if __name__ == "__main__":
    raise SystemExit(main())
