import os

from .config import Config, DB_CONFIG

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, tables are created on startup (db.create_all is idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the demo tenant on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

BATCH_API_KEY = Config.BATCH_API_KEY
WORK_START = Config.WORK_START
WORK_END = Config.WORK_END
LATE_GRACE_MINUTES = Config.LATE_GRACE_MINUTES
PAYROLL_TAX_METHOD = Config.PAYROLL_TAX_METHOD
SESSION_DAYS = Config.SESSION_DAYS
