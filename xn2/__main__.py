from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import Any

import uvicorn

from xer.errors import ConfigError, PollError, SendError, SerializationError
from xer.events import EventStream
from xer.runner import Runner
from xn2.app import create_app
from xn2.config import Settings, load_settings, parse_bool
from xn2.logging import configure_logging

logger = logging.getLogger("xn2")


def _error_fields(error: Exception) -> dict[str, Any]:
    fields: dict[str, Any] = {"error_type": error.__class__.__name__}
    if isinstance(error, (PollError, SendError)):
        fields["kind"] = error.kind.value
    if isinstance(error, (PollError, SendError, SerializationError)):
        fields["set"] = error.set_name
    if isinstance(error, PollError):
        fields["endpoint"] = error.endpoint
    if isinstance(error, SendError) and error.status is not None:
        fields["status"] = error.status
    return fields


def _log_messages(messages: EventStream[str]) -> None:
    for message in messages:
        logger.info("runner message", extra={"detail": message})


def _log_errors(errors: EventStream[Exception]) -> None:
    for error in errors:
        logger.error("runner error: %s", error, extra=_error_fields(error))


def start_consumers(messages: EventStream[str], errors: EventStream[Exception]) -> list[threading.Thread]:
    threads = [
        threading.Thread(target=_log_messages, args=(messages,), name="xn2-messages", daemon=True),
        threading.Thread(target=_log_errors, args=(errors,), name="xn2-errors", daemon=True),
    ]
    for thread in threads:
        thread.start()
    return threads


def _register_signal_handlers(runner: Runner, server: uvicorn.Server) -> None:
    def _handler(signum: int, frame: Any) -> None:
        del frame
        logger.info("received signal %s, shutting down", signum)
        runner.stop()
        server.should_exit = True

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xn2")
    parser.add_argument("--host", type=str, default=settings.host, help="address to listen on")
    parser.add_argument("--port", type=int, default=settings.port, help="port to listen on for HTTP requests")
    parser.add_argument(
        "--debug",
        type=str,
        default="true" if settings.debug else "false",
        help="debug mode true or false",
    )
    parser.add_argument("--config", type=str, default=settings.config_path, help="path to the YAML configuration")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings()
    except ValueError as exc:
        configure_logging()
        logger.error("invalid settings: %s", exc)
        return 1
    args = build_parser(settings).parse_args(argv)
    debug = parse_bool(args.debug, False)
    configure_logging(debug=debug, log_format=settings.log_format)

    try:
        runner = Runner.from_config(
            args.config,
            poll_timeout=settings.poll_timeout,
            send_timeout=settings.send_timeout,
        )
        messages, errors = runner.run()
    except ConfigError as exc:
        logger.error("error configuring the runner: %s", exc)
        return 1

    logger.info("runner started", extra={"sets": len(runner.sets), "config": args.config})
    start_consumers(messages, errors)

    app = create_app(runner, debug=debug)
    server = uvicorn.Server(
        uvicorn.Config(app, host=args.host, port=args.port, log_level="debug" if debug else "info", log_config=None)
    )
    _register_signal_handlers(runner, server)
    try:
        server.run()
    finally:
        runner.stop()
        runner.join(timeout=5)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
