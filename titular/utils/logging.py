"""Run log files under .titular/logs/."""

import logging
from datetime import datetime
from pathlib import Path

from titular.utils.files import get_logs_path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIET_LOGGERS = ('urllib3', 'asyncio', 'PIL')


def resolve_level(level: str) -> int:
    """Numeric level for a name; 'ALL' means everything, unknown names mean DEBUG."""
    name = level.upper()
    if name == 'ALL':
        return logging.NOTSET
    return getattr(logging, name, logging.DEBUG)


class RunFileHandler(logging.FileHandler):
    """File handler owned by titular, replaced on every setup call."""


def setup_local_logging(level: str = 'DEBUG', logs_dir: Path | None = None) -> Path:
    """Send every log record of this run to a fresh timestamped file.

    Any handler left by a previous call is closed and replaced, so calling
    this twice in one process does not duplicate records. Console output is
    left to the CLI's rich console.

    Args:
        level: Level name ('DEBUG', 'INFO', ... or 'ALL'). Defaults to 'DEBUG'.
        logs_dir: Directory for the file. Defaults to .titular/logs/

    Returns:
        Path of the log file.

    """
    logs_dir = logs_dir or get_logs_path()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f'run_{datetime.now():%Y%m%d_%H%M%S}.log'
    numeric_level = resolve_level(level)

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if isinstance(h, RunFileHandler)]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(numeric_level)

    handler = RunFileHandler(log_file, encoding='utf-8')
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return log_file
