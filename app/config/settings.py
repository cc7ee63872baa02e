import os
from dotenv import load_dotenv

def load_env():
    if os.getenv("ENVIRONMENT") == "production":
        return

    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    env_path = os.path.join(base_dir, ".env")

    if os.path.exists(env_path):
        load_dotenv(env_path)

def _parse_bool(value, default=False):
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")

def _parse_optional_float(value):
    if value is None or not value.strip():
        return None
    return float(value)

# Load env now
load_env()

# Spotify app credentials
CLIENT_ID = os.getenv("CLIENT_ID")
CLIENT_SECRET = os.getenv("CLIENT_SECRET")
REDIRECT_URI = os.getenv("REDIRECT_URI")

# Spotify endpoints
SPOTIFY_ACCOUNTS_BASE = os.getenv("SPOTIFY_ACCOUNTS_BASE", "https://accounts.spotify.com")
SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")

# None = no client-side timeout on outbound calls
SPOTIFY_HTTP_TIMEOUT = _parse_optional_float(os.getenv("SPOTIFY_HTTP_TIMEOUT"))

# Token lifecycle
TOKEN_REFRESH_MARGIN_SECONDS = int(os.getenv("TOKEN_REFRESH_MARGIN_SECONDS", "10"))

# Cookies
COOKIE_SECURE = _parse_bool(os.getenv("COOKIE_SECURE"))
COOKIE_MAX_AGE = int(os.getenv("COOKIE_MAX_AGE")) if os.getenv("COOKIE_MAX_AGE") else None

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]
