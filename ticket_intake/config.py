import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Field-service REST API
    field_service_api_url: str = os.getenv("FIELD_SERVICE_API_URL", "http://localhost:5000/api")
    field_service_api_token: str | None = os.getenv("FIELD_SERVICE_API_TOKEN")
    field_service_timeout_seconds: float = float(os.getenv("FIELD_SERVICE_TIMEOUT_SECONDS", "30"))

    # Intake form behaviour
    zone_catalog_limit: int = int(os.getenv("INTAKE_ZONE_CATALOG_LIMIT", "100"))
    redirect_delay_seconds: float = float(os.getenv("INTAKE_REDIRECT_DELAY_SECONDS", "1.5"))
    session_ttl_seconds: int = int(os.getenv("INTAKE_SESSION_TTL_SECONDS", str(30 * 60)))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes", "on"}


settings = Settings()
