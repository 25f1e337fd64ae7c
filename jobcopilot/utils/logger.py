import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "jobcopilot"


def _log_dir() -> str:
    override = os.environ.get("JOBCOPILOT_LOG_DIR")
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), ".jobcopilot", "logs")


def setup_logger(name=LOGGER_NAME, level=logging.INFO):
    """
    Configure a logger writing to a rotating file and stderr.
    Stdout is left alone: the CLI prints its own summaries there.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Reconfiguring must not stack duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    log_dir = _log_dir()
    try:
        os.makedirs(log_dir, exist_ok=True)
        # Max 5MB, keep 3 backups
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "jobcopilot.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        sys.stderr.write(f"jobcopilot: file logging disabled ({e})\n")

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    return logger


def set_level(level_name: str) -> None:
    """Apply the configured log level to the package logger."""
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.getLogger(LOGGER_NAME).setLevel(level)


def mask_email(address: str) -> str:
    """Keep only the first three characters of an address for log lines."""
    if not address:
        return "***"
    return f"{address[:3]}***"


logger = setup_logger()
