import os
from dotenv import load_dotenv


load_dotenv()  # Load environment variables from .env file


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


APP_NAME = os.getenv("APP_NAME", "auth-service")
APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL")

# Empty REDIS_URL means the in-memory OTP cache is used
REDIS_URL = os.getenv("REDIS_URL", "")
CACHE_TIMEOUT_SECONDS = float(os.getenv("CACHE_TIMEOUT_SECONDS", 2.0))

# JWT
SECRET_KEY = os.getenv("SECRET_KEY")
REFRESH_SECRET_KEY = os.getenv("REFRESH_SECRET_KEY") or SECRET_KEY
ALGORITHM = os.getenv("ALGORITHM") or "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 7))

# OTP
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", 5 * 60))
# Fixed: the verify schema only accepts codes of this length
OTP_LENGTH = 6
# Only for local/e2e testing: returns the plaintext code from /auth/otp/send
OTP_EXPOSE_CODE_FOR_TESTING = _env_bool("OTP_EXPOSE_CODE_FOR_TESTING", False)

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:8081").split(",")
    if o.strip()
]

LOG_FILE = os.getenv("LOG_FILE")
SENTRY_DSN = os.getenv("SENTRY_DSN")
