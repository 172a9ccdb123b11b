import os
from dotenv import load_dotenv

load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return the environment variable, treating an empty string as unset."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def get_required_env(name: str) -> str:
    value = get_env(name)
    if value is None:
        raise RuntimeError(f"Required environment variable {name} is not set")
    return value


def get_bool_env(name: str, default: bool) -> bool:
    value = get_env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


user = get_env("DB_USER")
password = get_env("DB_PASSWORD")
host = get_env("DB_HOST", "localhost")
port = get_env("DB_PORT", "5432")
db_name = get_env("DB_NAME")
database_url = get_env(
    "DATABASE_URL",
    f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}",
)

solver_timeout = float(get_env("SOLVER_TIMEOUT", "120"))

siteadmin_emails = get_env("SITEADMIN_EMAILS", "")
firebase_project_id = get_env("FIREBASE_PROJECT_ID")
revenuecat_api_key = get_env("REVENUECAT_API_KEY")
revenuecat_url = get_env("REVENUECAT_URL", "https://api.revenuecat.com")

hint_tracking_atomic = get_bool_env("HINT_TRACKING_ATOMIC", True)
access_log_retention_days = int(get_env("ACCESS_LOG_RETENTION_DAYS", "30"))
server_port = int(get_env("PORT", "3000"))

if __name__ == "__main__":
    print(database_url, siteadmin_emails, hint_tracking_atomic)
