# dashboard_ui/config.py
import logging
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Upstream REST API
API_BASE_URL = os.getenv("DASHBOARD_API_URL", "http://localhost:5000").rstrip("/")
API_TIMEOUT = float(os.getenv("DASHBOARD_API_TIMEOUT", "10"))

# UI session cookie
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = "HS256"
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "dashboard_session")
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "480"))

# Frontend dev servers allowed to call the UI server
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# UI server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8080"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
