"""
Application settings read from environment variables.
Values are loaded from a local .env file when present.
"""
import os

import pytz
from dotenv import load_dotenv

load_dotenv()

APP_NAME = os.environ.get("APP_NAME", "Brico Inventory API")

# Firebase credentials
# Priority: FIREBASE_CREDENTIALS_JSON_CONTENT env var (for production)
# Fallback: local service account JSON file (for local development)
FIREBASE_CREDENTIALS_JSON_CONTENT = os.environ.get("FIREBASE_CREDENTIALS_JSON_CONTENT")
FIREBASE_CREDENTIALS_FILE = os.environ.get("FIREBASE_CREDENTIALS_FILE", "firebase-adminsdk.json")

# Cloudinary (image uploads)
CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET")

# Redis cache
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
# Cache TTL in seconds (default: 10 minutes)
DEFAULT_CACHE_TTL = int(os.environ.get("CACHE_TTL", 600))
# Dashboard stats TTL (default: 5 minutes)
STATS_CACHE_TTL = int(os.environ.get("STATS_CACHE_TTL", 300))
# Seconds to wait before reconnecting after Redis was unreachable
REDIS_RETRY_INTERVAL = int(os.environ.get("REDIS_RETRY_INTERVAL", 60))

# Inventory
LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", 10))
DEFAULT_MIN_STOCK_LEVEL = int(os.environ.get("DEFAULT_MIN_STOCK_LEVEL", 10))
DEFAULT_MAX_STOCK_LEVEL = int(os.environ.get("DEFAULT_MAX_STOCK_LEVEL", 1000))

# Formatting
CURRENCY = os.environ.get("CURRENCY", "MAD")
DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "fr")
APP_TIMEZONE = pytz.timezone(os.environ.get("APP_TIMEZONE", "Africa/Casablanca"))

# HTTP
CORS_ORIGINS = [origin.strip() for origin in os.environ.get("CORS_ORIGINS", "*").split(",") if origin.strip()]
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
PORT = int(os.environ.get("PORT", 8000))
