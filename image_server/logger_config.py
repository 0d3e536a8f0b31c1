import logging
import sys
from pathlib import Path

LOGGER_NAME = "image_server"


def setup_logger(logs_dir: str = "logs") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Every module calls this on import; only wire handlers once
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    # Create formatters
    file_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    # File handler (for detailed logging)
    logs_path = Path(logs_dir)
    logs_path.mkdir(exist_ok=True)
    file_handler = logging.FileHandler(logs_path / "image_server.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    # Console handler (for basic logging)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
