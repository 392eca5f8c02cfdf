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

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medbook.db")

CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "America/Bogota")

ARCHIVAL_SWEEP_ENABLED = _get_bool(os.getenv("ARCHIVAL_SWEEP_ENABLED"), default=True)
ARCHIVAL_SWEEP_HOUR = int(os.getenv("ARCHIVAL_SWEEP_HOUR", "1"))
ARCHIVAL_SWEEP_MINUTE = int(os.getenv("ARCHIVAL_SWEEP_MINUTE", "0"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if not 0 <= ARCHIVAL_SWEEP_HOUR <= 23:
        raise ValueError("ARCHIVAL_SWEEP_HOUR must be between 0 and 23.")
    if not 0 <= ARCHIVAL_SWEEP_MINUTE <= 59:
        raise ValueError("ARCHIVAL_SWEEP_MINUTE must be between 0 and 59.")
