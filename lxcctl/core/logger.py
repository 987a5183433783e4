"""Logging for lxcctl: rich output on stderr, optionally mirrored to a file."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# stdout is left to command output (status tables, --brief states)
console = Console(stderr=True)

ROOT_LOGGER = "lxcctl"
LOG_FILE = Path("/var/log/lxcctl/lxcctl.log")
FALLBACK_LOG_FILE = Path("/tmp/lxcctl.log")

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _level(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Mirror every lxcctl log record to a file.

    Calling this again reuses the handler that is already installed.

    Args:
        log_file: Path to log file (defaults to /var/log/lxcctl/lxcctl.log)
        verbose: Also record debug messages

    Returns:
        Path of the log file in use; /tmp/lxcctl.log when the requested
        directory cannot be created
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    target = Path(log_file) if log_file else LOG_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target = FALLBACK_LOG_FILE

    file_handler = logging.FileHandler(target)
    file_handler.setLevel(_level(verbose))
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(file_handler)
    root_logger.setLevel(_level(verbose))

    root_logger.debug(f"Logging to {target}")
    return target


def set_verbose(verbose: bool) -> None:
    """Switch every lxcctl logger between INFO and DEBUG."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(ROOT_LOGGER) and isinstance(logger, logging.Logger):
            logger.setLevel(_level(verbose))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, attached to the shared rich console."""
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
