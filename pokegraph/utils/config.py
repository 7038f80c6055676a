# pokegraph/utils/config.py
"""
Configuration for the pokegraph loader
Loads connection secrets from .env, defines loader behaviour here
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# BASE PATHS (from .env)
# ============================================================================
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Root of a PokeAPI api-data checkout, already pointing at the /api/v2 level
DATA_PATH = Path(os.getenv('DATA_PATH', 'data/api-data/data/api/v2'))
if not DATA_PATH.is_absolute():
    DATA_PATH = PROJECT_ROOT / DATA_PATH

LOGS_PATH = PROJECT_ROOT / "logs"

# ============================================================================
# NEO4J CONNECTION (from .env)
# ============================================================================
NEO4J_URI = os.getenv("NEO4J_URI", "bolt://localhost:7687")
NEO4J_USER = os.getenv("NEO4J_USER", "neo4j")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD")
NEO4J_DATABASE = os.getenv("NEO4J_DATABASE")  # None = server default

# ============================================================================
# LOADER CONFIGURATION (Application logic - NOT in .env)
# ============================================================================
LOADER_CONFIG = {
    "url_prefix": "/api/v2",
    "num_workers": int(os.getenv("LOADER_WORKERS", "8")),
    # Localized name lists are awkward to map, dropped for now
    "excluded_fields": ("names",),
    "unknown_value_policy": "warn",
}

# ============================================================================
# HTTP SOURCE CONFIGURATION
# ============================================================================
HTTP_CONFIG = {
    "base_url": os.getenv("POKEAPI_BASE_URL", "https://pokeapi.co/api/v2"),
    "timeout": 10,  # seconds
    "retry_attempts": 3,
    "delay_between_requests": 1,  # seconds, doubled after a timeout
    "headers": {
        "User-Agent": "pokegraph-loader/0.1",
        "Accept": "application/json",
    },
}

# Debug
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"
