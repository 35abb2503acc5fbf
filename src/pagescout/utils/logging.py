"""Logging configuration for pagescout."""

import logging
from datetime import datetime
from pathlib import Path

import logfire

from pagescout.utils.files import get_logs_path


def configure_logfire(token: str | None = None, service_name: str = 'pagescout') -> bool:
    """Configure logfire spans and structured logs.

    Without a token, logfire still runs locally but sends nothing.

    Args:
        token: Logfire write token, usually from LOGFIRE_TOKEN
        service_name: Service name attached to every span

    Returns:
        True if spans are exported to logfire, False otherwise.

    """
    if token:
        logfire.configure(token=token, service_name=service_name)
        return True

    logfire.configure(send_to_logfire=False, service_name=service_name, console=False)
    return False


def setup_local_logging(level: str = 'DEBUG') -> Path:
    """Set up local file-based logging.

    Creates a log file in .pagescout/logs/ and configures the root logger
    to write to it. Console output is handled by rich in the CLI.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO'). Defaults to 'DEBUG'.

    Returns:
        Path: The path to the created log file.

    """
    logs_dir = get_logs_path()
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = logs_dir / f'run_{timestamp}.log'

    if level.upper() == 'ALL':
        numeric_level = logging.NOTSET
    else:
        numeric_level = getattr(logging, level.upper(), logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root_logger.addHandler(file_handler)

    return log_file
