import json
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, time
from zoneinfo import ZoneInfo

DEFAULT_COHORT_TABLES = [
    "basic1_0_schedule",
    "basic1_1_schedule",
    "basic2_0_schedule",
    "basic3_0_schedule",
    "placement2_0_schedule",
    "placement3_0_schedule",
]


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "Cohort Session Scheduler"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./cohort_scheduler.db"
    DATABASE_ECHO: bool = False

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = Field(default=["http://localhost:3000"])

    # Scheduling Settings
    REGION_TIMEZONE: str = "Asia/Kolkata"
    PROVISIONING_WINDOW_DAYS: int = 7
    MEETING_DURATION_MINUTES: int = 90
    DEFAULT_SESSION_TIME: time = time(19, 0, 0)
    RESCHEDULE_HORIZON_DAYS: int = 30
    FALLBACK_COHORT_TABLES: List[str] = Field(default=DEFAULT_COHORT_TABLES)
    BATCH_TIMEOUT_SECONDS: float = 900.0

    # Cron trigger
    CRON_SECRET: Optional[str] = None

    # In-process daily scheduler
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_HOUR: int = 6
    SCHEDULER_MINUTE: int = 0

    # Microsoft Graph Settings
    MS_TENANT_ID: Optional[str] = None
    MS_CLIENT_ID: Optional[str] = None
    MS_CLIENT_SECRET: Optional[str] = None
    MS_ORGANIZER_USER_ID: Optional[str] = None
    GRAPH_TIMEOUT_SECONDS: float = 30.0

    # WhatsApp Cloud API Settings
    WHATSAPP_PHONE_NUMBER_ID: Optional[str] = None
    WHATSAPP_ACCESS_TOKEN: Optional[str] = None
    WHATSAPP_TIMEOUT_SECONDS: float = 15.0
    WHATSAPP_SWAP_TEMPLATE: str = "mentor_swap_alert"
    WHATSAPP_NEW_MENTOR_TEMPLATE: str = "class_assigned_mentor"
    PHONE_COUNTRY_CODE: str = "91"

    # Delay between super-mentor notifications (provider rate limits)
    NOTIFICATION_DELAY_SECONDS: float = 0.5

    # Email Settings
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 465
    EMAIL_USERNAME: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM: Optional[str] = None
    MAIL_FROM_NAME: str = "Cohort Scheduler"
    MAIL_USE_TLS: bool = False
    MAIL_TIMEOUT: int = 10

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @field_validator('ALLOWED_ORIGINS', 'FALLBACK_COHORT_TABLES', mode='before')
    @classmethod
    def parse_comma_separated(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator('PHONE_COUNTRY_CODE')
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        cleaned = v.lstrip('+')
        if not cleaned.isdigit() or not 1 <= len(cleaned) <= 3:
            raise ValueError(f"Invalid country calling code: {v}")
        return cleaned

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True
    )

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.REGION_TIMEZONE)


# Initialize settings
settings = Settings()


# Helper Functions
def regional_now() -> datetime:
    """Current wall-clock time in the region the cohorts are scheduled in."""
    return datetime.now(tz=settings.timezone)


def get_database_url() -> str:
    return settings.DATABASE_URL


def get_graph_settings() -> Dict[str, Optional[str]]:
    return {
        "tenant_id": settings.MS_TENANT_ID,
        "client_id": settings.MS_CLIENT_ID,
        "client_secret": settings.MS_CLIENT_SECRET,
        "organizer_user_id": settings.MS_ORGANIZER_USER_ID,
        "timeout": settings.GRAPH_TIMEOUT_SECONDS,
        "timezone": settings.REGION_TIMEZONE,
    }


def get_whatsapp_settings() -> dict:
    return {
        "phone_number_id": settings.WHATSAPP_PHONE_NUMBER_ID,
        "access_token": settings.WHATSAPP_ACCESS_TOKEN,
        "timeout": settings.WHATSAPP_TIMEOUT_SECONDS,
        "templates": {
            "swap_alert": settings.WHATSAPP_SWAP_TEMPLATE,
            "new_mentor": settings.WHATSAPP_NEW_MENTOR_TEMPLATE,
        },
    }


def get_logging_config() -> Dict[str, Optional[str]]:
    return {
        "log_level": settings.LOG_LEVEL,
        "log_dir": settings.LOG_DIR
    }


def get_email_settings() -> dict:
    return {
        "smtp_server": settings.SMTP_SERVER,
        "smtp_port": settings.SMTP_PORT,
        "username": settings.EMAIL_USERNAME,
        "password": settings.EMAIL_PASSWORD,
        "from_email": settings.EMAIL_FROM,
        "from_name": settings.MAIL_FROM_NAME,
        "use_tls": settings.MAIL_USE_TLS,
        "timeout": settings.MAIL_TIMEOUT,
    }
