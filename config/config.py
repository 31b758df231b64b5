import os
import urllib.parse


def _flag(name: str, default: str = "0") -> bool:
    return bool(int(os.environ.get(name, default)))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dandori-dev-secret"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "dandori_portal")

    # Dev helpers
    AUTO_INIT_DB = _flag("AUTO_INIT_DB")
    AUTO_SEED_DB = _flag("AUTO_SEED_DB")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Batch endpoints (invoice generation, overdue check)
    BATCH_API_KEY = os.environ.get("BATCH_API_KEY", "")

    # Attendance rules
    WORK_START = os.environ.get("WORK_START", "09:00")
    WORK_END = os.environ.get("WORK_END", "18:00")
    LATE_GRACE_MINUTES = int(os.environ.get("LATE_GRACE_MINUTES", "0"))

    # annualized | electronic
    PAYROLL_TAX_METHOD = os.environ.get("PAYROLL_TAX_METHOD", "annualized")

    SESSION_DAYS = int(os.environ.get("SESSION_DAYS", "7"))

    _encoded_password = urllib.parse.quote_plus(DB_PASSWORD)
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or (
        f"mysql+mysqlconnector://{DB_USER}:{_encoded_password}@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False


DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}
