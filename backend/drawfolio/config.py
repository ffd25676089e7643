"""
Drawfolio - Runtime Configuration

Settings are read once from the environment. Engine entry points accept
explicit arguments; these values only supply defaults.
"""
import os

LOG_LEVEL = os.getenv("DRAWFOLIO_LOG_LEVEL", "INFO").upper()

API_HOST = os.getenv("DRAWFOLIO_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("DRAWFOLIO_API_PORT", "8001"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("DRAWFOLIO_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Engine defaults
MAX_HUNTS_PER_YEAR = int(os.getenv("DRAWFOLIO_MAX_HUNTS_PER_YEAR", "2"))
HUNT_DAYS_PER_YEAR = int(os.getenv("DRAWFOLIO_HUNT_DAYS_PER_YEAR", "14"))
PLANNING_HORIZON_YEARS = int(os.getenv("DRAWFOLIO_PLANNING_HORIZON_YEARS", "10"))
