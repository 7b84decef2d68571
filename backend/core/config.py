import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "30"))
SCHEDULING_TIMEZONE = os.getenv("SCHEDULING_TIMEZONE", "UTC")

REMINDERS_ENABLED = _get_bool(os.getenv("REMINDERS_ENABLED"), default=True)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
REMINDER_FROM_EMAIL = os.getenv("REMINDER_FROM_EMAIL", "no-reply@example.com")

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if DEFAULT_SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("DEFAULT_SLOT_DURATION_MINUTES must be a positive number of minutes.")
