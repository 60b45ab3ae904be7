import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "art_commissions")

# Identity provider that issues the tokens exchanged at /api/auth/session
AUTH_SERVICE_URL = os.environ.get("AUTH_SERVICE_URL", "https://auth.example.com")
AUTH_SERVICE_TIMEOUT = float(os.environ.get("AUTH_SERVICE_TIMEOUT", "10"))

SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "auth")
SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "7"))
SESSION_CACHE_TTL_SECONDS = int(os.environ.get("SESSION_CACHE_TTL_SECONDS", "300"))
COOKIE_SECURE = os.environ.get("COOKIE_SECURE", "true").lower() == "true"

# Presence: a session that has not sent a heartbeat within the TTL is offline
PRESENCE_TTL_SECONDS = int(os.environ.get("PRESENCE_TTL_SECONDS", "90"))
PRESENCE_SWEEP_SECONDS = int(os.environ.get("PRESENCE_SWEEP_SECONDS", "30"))

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Route guard
LOGIN_PATH = "/auth/login"
DASHBOARD_PATH = "/dashboard"
PUBLIC_PATHS = ("/auth/login", "/auth/register", "/auth/forgot-password")
GUARDED_PREFIXES = ("/dashboard", "/perfil", "/pedidos", "/auth")
