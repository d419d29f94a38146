from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

DEFAULT_LOG_PATH = "/var/log/fnnas-chroot.log"
# Used when /var/log inside the image is not writable yet.
FALLBACK_LOG_PATH = "/var/tmp/fnnas-chroot.log"
ERROR_MARKER = "[ ERROR ]"

HANDLER_NAME = "fnnas-chroot"

MARKERS = {
    logging.DEBUG: "[ DEBUG ]",
    logging.INFO: "[ INFO ]",
    logging.WARNING: "[ WARNING ]",
    logging.ERROR: ERROR_MARKER,
    logging.CRITICAL: ERROR_MARKER,
}


class MarkerFormatter(logging.Formatter):
    """Console lines in the image build's ``[ INFO ] message`` style."""

    def format(self, record: logging.LogRecord) -> str:
        line = f" {MARKERS.get(record.levelno, '[ INFO ]')} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _log_candidates(log_path: str, root: str) -> List[Path]:
    def in_root(p: str) -> Path:
        return Path(root) / p.lstrip("/") if p.startswith("/") else Path(p)

    return [in_root(log_path), in_root(FALLBACK_LOG_PATH), Path.cwd() / "fnnas-chroot.log"]


def _open_log(candidates: List[Path]) -> tuple[Optional[logging.Handler], Optional[Path]]:
    for path in candidates:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return logging.FileHandler(path), path
        except OSError:
            continue
    return None, None


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    root: str = "/",
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send logs to a file inside the chroot and marker lines to stdout.

    ``log_path`` is an in-chroot path and is resolved against ``root``, so a
    host-side run logs into the image it prepares. Calling this again replaces
    the handlers installed by a previous call.

    Returns the file actually written, or "" when no candidate was writable.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    for h in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
        logger.removeHandler(h)
        h.close()

    candidates = _log_candidates(log_path, root)
    file_handler, chosen = _open_log(candidates)
    if file_handler is not None:
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
        file_handler.set_name(HANDLER_NAME)
        logger.addHandler(file_handler)

    if also_console:
        # stderr is reserved for the single failure line printed by main()
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(MarkerFormatter())
        console.set_name(HANDLER_NAME)
        logger.addHandler(console)

    if chosen is not None and chosen != candidates[0]:
        logging.getLogger(__name__).warning("Cannot write %s; logging to %s", candidates[0], chosen)
    return str(chosen) if chosen is not None else ""
