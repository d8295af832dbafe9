from __future__ import annotations

"""Entry script for running the regcat catalog API.

This wrapper:

- Initialises application settings.
- Configures Loguru logging level based on ``Settings.log_level`` and routes
  standard-library logging (used by uvicorn) through Loguru.
- Serves ``regcat.api.app.create_app`` with uvicorn.

Usage (with uv):

    uv run python script/run_api.py --host 0.0.0.0 --port 5000
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from loguru import logger
from rich.console import Console

from regcat.config import Settings, get_settings

console = Console()


class _LoguruInterceptHandler(logging.Handler):
    """Bridge standard-library logging records into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - thin wrapper
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def _configure_stdlib_logging(level: str) -> None:
    """Route stdlib logging (including uvicorn) through Loguru."""

    handler: logging.Handler = _LoguruInterceptHandler()

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
        uvicorn_logger.setLevel(level)

    logging.captureWarnings(True)


def _resolve_logs_dir(settings: Settings, role: str) -> Path:
    """Return the log directory for the given role, creating it if needed."""

    if settings.logs_base_dir:
        base_dir = Path(settings.logs_base_dir).expanduser()
    else:
        base_dir = Path.cwd()

    log_dir = base_dir / "logs" / role
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _configure_logging(settings: Settings) -> None:
    """Configure Loguru and bridge stdlib logging using application settings."""

    level = (settings.log_level or "INFO").upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        backtrace=False,
        diagnose=False,
    )

    logs_dir = _resolve_logs_dir(settings, role="api")
    log_timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_file = logs_dir / f"api-{log_timestamp}.log"
    logger.add(
        log_file,
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )

    _configure_stdlib_logging(level)

    logger.bind(module="script.run_api").info(
        "API logging initialised at level {} file={}", level, log_file
    )
    console.log("[green]API logs[/] -> {}".format(log_file))


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the regcat registry catalog API.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind host.")
    parser.add_argument("--port", type=int, default=5000, help="Bind port.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint for the API server."""

    args = _build_arg_parser().parse_args(list(argv) if argv is not None else None)

    settings = get_settings()
    _configure_logging(settings)

    import uvicorn

    from regcat.api.app import create_app

    console.log(
        "[bold green]regcat API online[/] "
        "host={} port={} registry={!r}".format(args.host, args.port, settings.http_host)
    )
    uvicorn.run(
        create_app(settings),
        host=str(args.host),
        port=int(args.port),
        log_config=None,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
