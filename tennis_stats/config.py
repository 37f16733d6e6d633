"""
Tennis Stats configuration.

Module-level settings for dataset generation and reporting, plus the
environment handling shared by the command line entry points.
"""

import logging
import multiprocessing
import os
import re
from typing import Optional

from dotenv import load_dotenv

# Dataset size
NUM_PLAYERS = 10000
NUM_TOURNAMENTS = 1000
NUM_MATCHES = 100000

# Database settings
BATCH_SIZE = 1000  # Rows per bulk insert
DB_PAGE_SIZE = 1000  # Size of each page for execute_values
CONNECT_TIMEOUT = 10  # Connection timeout in seconds
SQLITE_BUSY_TIMEOUT = 30  # Seconds a SQLite writer waits for the file lock

# Use all cores except one
NUM_WORKERS = max(1, multiprocessing.cpu_count() - 1)

# Report defaults
WIN_PERCENTAGE_LIMIT = 10
WIN_PERCENTAGE_MIN_MATCHES = 5
PERFORMANCE_LIMIT = 20
PERFORMANCE_MIN_MATCHES = 10
TOURNAMENT_LIMIT = 10
DURATION_BUCKETS = (0, 90, 120, 150, 180, 240, 360)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for command line runs"""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def validate_database_url(url: str) -> str:
    """Convert postgres:// to postgresql:// if needed"""
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def mask_database_url(url: str) -> str:
    """Hide credentials so the URL can be logged"""
    return re.sub(r'://[^:/@]+:[^@]+@', '://*****:*****@', url)


def get_database_url(override: Optional[str] = None) -> str:
    """
    Resolve the database URL from an explicit value or the environment.

    Args:
        override: URL passed on the command line, takes precedence

    Returns:
        A SQLAlchemy compatible database URL
    """
    load_dotenv()
    database_url = override or os.getenv('DATABASE_URL')
    if not database_url:
        raise ValueError("DATABASE_URL not found in environment variables")
    return validate_database_url(database_url)
