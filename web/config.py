"""Centralized configuration for the catalog web API."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file before reading any settings
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 4000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "4000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# CORS: comma-separated list of frontend origins allowed to call the API
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "https://app.bikesultoursgest.com,https://api.bikesultoursgest.com",
    ).split(",")
    if origin.strip()
]
CORS_ALLOWED_METHODS = ["GET", "POST", "OPTIONS", "HEAD"]
CORS_ALLOWED_HEADERS = [
    "Content-Type", "Authorization", "User-Agent", "Cache-Control", "Pragma", "Accept",
    "Accept-Encoding", "Accept-Language", "X-Requested-With", "Origin", "Referer",
    "If-None-Match", "If-Modified-Since",
]
CORS_EXPOSED_HEADERS = ["Cache-Control", "ETag", "Last-Modified", "X-Cache-Status"]

# HTTP caching for read endpoints (seconds)
CACHE_MAX_AGE = int(os.getenv("CACHE_MAX_AGE", "300"))
CACHE_STALE_WHILE_REVALIDATE = int(os.getenv("CACHE_STALE_WHILE_REVALIDATE", "600"))
