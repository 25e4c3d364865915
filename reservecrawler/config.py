"""
Centralized configuration for the reserve crawler.
Loads configuration from environment variables.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
# Look for .env in parent directory (project root)
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# Data portals
NEEDS_BASE_URL = os.getenv("RESERVE_NEEDS_BASE_URL", "https://www.transnetbw.de/files/bis/srlbedarf")
CALLS_URL = os.getenv("RESERVE_CALLS_URL", "https://www.regelleistung.net/ext/data/")
AUCTIONS_URL = os.getenv("RESERVE_AUCTIONS_URL", "https://www.regelleistung.net/ext/tender/")

# HTTP behaviour
REQUEST_TIMEOUT = int(os.getenv("RESERVE_REQUEST_TIMEOUT", "60"))
MAX_RETRIES = int(os.getenv("RESERVE_MAX_RETRIES", "3"))
BACKOFF_FACTOR = float(os.getenv("RESERVE_BACKOFF_FACTOR", "1.0"))
USER_AGENT = os.getenv(
    "RESERVE_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko)"
)

# Source timestamps are German local time
LOCAL_TIMEZONE = os.getenv("RESERVE_LOCAL_TIMEZONE", "Europe/Berlin")

# Runner output
OUTPUT_DIR = Path(os.getenv("RESERVE_OUTPUT_DIR", "data"))
