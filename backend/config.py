"""
Runtime configuration for the EXEAI backend.
Values come from the environment, with a local .env file loaded first.
"""
import os
import logging

from dotenv import load_dotenv

env_loaded = load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./exeai.db")

# Sessions
SESSION_SECRET = os.getenv("SESSION_SECRET", "exeai-dev-secret-change-me")
SESSION_ALGORITHM = "HS256"
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", str(24 * 30)))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "exeai_session")

# Accounts
TRIAL_DAYS = int(os.getenv("TRIAL_DAYS", "14"))
PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Frontend
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

# Gmail
GMAIL_CLIENT_ID = os.getenv("GMAIL_CLIENT_ID")
GMAIL_CLIENT_SECRET = os.getenv("GMAIL_CLIENT_SECRET")
GMAIL_REDIRECT_URI = os.getenv("GMAIL_REDIRECT_URI", "http://localhost:8787/api/gmail/callback")

# WhatsApp
WHATSAPP_BRIDGE_URL = os.getenv("WHATSAPP_BRIDGE_URL", "ws://127.0.0.1:8790")
WHATSAPP_AUTH_DIR = os.getenv(
    "WHATSAPP_AUTH_DIR", os.path.join(os.getcwd(), "whatsapp_auth")
)
WHATSAPP_AUTO_CONNECT = os.getenv("WHATSAPP_AUTO_CONNECT", "false").lower() == "true"


def is_production() -> bool:
    return ENVIRONMENT.lower() == "production"


def log_config_summary(logger: logging.Logger):
    """Log which integration settings are present, never their values"""
    logger.info(f"Environment file loading: {'SUCCESS' if env_loaded else 'NOT FOUND'}")
    logger.info(f"  ENVIRONMENT: {ENVIRONMENT}")
    logger.info(f"  DATABASE_URL: {DATABASE_URL.split('://', 1)[0]}://...")
    logger.info(f"  GMAIL_CLIENT_ID: {'SET' if GMAIL_CLIENT_ID else 'NOT SET'}")
    logger.info(f"  GMAIL_CLIENT_SECRET: {'SET' if GMAIL_CLIENT_SECRET else 'NOT SET'}")
    logger.info(f"  WHATSAPP_BRIDGE_URL: {WHATSAPP_BRIDGE_URL}")
    if SESSION_SECRET == "exeai-dev-secret-change-me":
        logger.warning("SESSION_SECRET is using the development default")
