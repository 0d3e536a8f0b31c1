"""Configuration settings for the image server."""
import os
from dataclasses import dataclass

# Directory paths
DATA_DIR = os.getenv("IMAGE_SERVER_DATA_DIR", "./data")
TEMP_DIR = os.getenv("IMAGE_SERVER_TEMP_DIR", "./temp")

# Upload credentials (HTTP Basic)
UPLOAD_USER = os.getenv("IMAGE_SERVER_USER", "")
UPLOAD_PASS = os.getenv("IMAGE_SERVER_PASS", "")

# Storage limits
MAX_UPLOAD_SIZE = int(os.getenv("IMAGE_SERVER_MAX_UPLOAD_SIZE", str(25 * 1024 * 1024)))  # 25MB
MAX_KEY_LENGTH = 1024

# Cache lifetimes (seconds)
SHORT_CACHE_MAX_AGE = 60 * 60  # 1 hour
LONG_CACHE_MAX_AGE = 60 * 60 * 24 * 365  # 1 year

# Cross-origin access
CORS_ALLOW_ORIGIN = os.getenv("IMAGE_SERVER_CORS_ORIGIN", "*")
CORS_MAX_AGE = 86400

# Store failure monitor
MONITOR_FAILURE_THRESHOLD = int(os.getenv("IMAGE_SERVER_MONITOR_THRESHOLD", "5"))
MONITOR_WINDOW_SECONDS = int(os.getenv("IMAGE_SERVER_MONITOR_WINDOW", "60"))

# Server
HOST = os.getenv("IMAGE_SERVER_HOST", "0.0.0.0")
PORT = int(os.getenv("IMAGE_SERVER_PORT", "8000"))


@dataclass(frozen=True)
class Settings:
    data_dir: str
    temp_dir: str
    upload_user: str
    upload_pass: str
    max_upload_size: int = MAX_UPLOAD_SIZE
    cors_allow_origin: str = CORS_ALLOW_ORIGIN
    cors_max_age: int = CORS_MAX_AGE
    monitor_failure_threshold: int = MONITOR_FAILURE_THRESHOLD
    monitor_window_seconds: int = MONITOR_WINDOW_SECONDS


def load_settings() -> Settings:
    """Snapshot the module-level values into an immutable Settings object.

    Values are read at call time so tests can override the module attributes
    before the application starts.
    """
    return Settings(
        data_dir=DATA_DIR,
        temp_dir=TEMP_DIR,
        upload_user=UPLOAD_USER,
        upload_pass=UPLOAD_PASS,
        max_upload_size=MAX_UPLOAD_SIZE,
        cors_allow_origin=CORS_ALLOW_ORIGIN,
        cors_max_age=CORS_MAX_AGE,
        monitor_failure_threshold=MONITOR_FAILURE_THRESHOLD,
        monitor_window_seconds=MONITOR_WINDOW_SECONDS,
    )
