import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Mounted as a volume in the container so logs survive restarts.
log_dir = Path("logs")


def setup_logging(level: int = logging.INFO):
    """
    Installs the application-wide logging configuration.

    Logs go both to stdout (for the container runtime) and to a rotating
    file under ``logs/``. Handlers already attached by uvicorn are replaced
    so every record shares one format.
    """
    log_format = "%(asctime)s - [%(name)s] - %(levelname)s - %(message)s"

    log_dir.mkdir(exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(stdout_handler)

    # Rotates at 5 MB into app.log.1 ... app.log.5
    file_handler = RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=5*1024*1024,
        backupCount=5
    )
    file_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(file_handler)

    # APScheduler logs every job run at INFO; keep only its warnings.
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
