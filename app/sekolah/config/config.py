import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Holds settings read straight from environment variables.
    """
    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", 2))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", 10))

    # Redis
    APPLICATION_REDIS_URL: str = os.environ.get("APPLICATION_REDIS_URL")
    RATE_LIMITER_REDIS_URL: str = os.environ.get("RATE_LIMITER_REDIS_URL", "memory://")

    # JWT issued by the hosted auth provider
    SECRET_KEY: str = os.environ.get("SECRET_KEY")
    ALGORITHM: str = os.environ.get("ALGORITHM", "HS256")
    USER_SESSION_TTL_SECONDS: int = int(os.environ.get("USER_SESSION_TTL_SECONDS", 900))

    # Shared secret for externally triggered cron calls
    CRON_SECRET_KEY: str = os.environ.get("CRON_SECRET_KEY")

    # Push notification dispatch
    PUSH_DISPATCH_URL: str = os.environ.get("PUSH_DISPATCH_URL")
    PUSH_DISPATCH_TIMEOUT_SECONDS: float = float(os.environ.get("PUSH_DISPATCH_TIMEOUT_SECONDS", 15))
    PUSH_DISPATCH_TOKEN: str = os.environ.get("PUSH_DISPATCH_TOKEN")

    # School settings cache (remote -> cache -> default)
    SETTINGS_CACHE_TTL_SECONDS: int = int(os.environ.get("SETTINGS_CACHE_TTL_SECONDS", 7 * 24 * 3600))

    # Scheduled jobs
    SCHEDULER_ENABLED: bool = _env_bool("SCHEDULER_ENABLED", True)
    AUTO_ALPHA_ENABLED: bool = _env_bool("AUTO_ALPHA_ENABLED", True)
    NO_TEACH_INTERVAL_MINUTES: int = int(os.environ.get("NO_TEACH_INTERVAL_MINUTES", 5))
    REMINDER_INTERVAL_MINUTES: int = int(os.environ.get("REMINDER_INTERVAL_MINUTES", 5))
    AUTO_ALPHA_INTERVAL_MINUTES: int = int(os.environ.get("AUTO_ALPHA_INTERVAL_MINUTES", 15))

# Single importable instance
settings = Config()
