import os

from .config import Config, DB_CONFIG

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

BATCH_API_KEY = Config.BATCH_API_KEY
WORK_START = Config.WORK_START
WORK_END = Config.WORK_END
LATE_GRACE_MINUTES = Config.LATE_GRACE_MINUTES
PAYROLL_TAX_METHOD = Config.PAYROLL_TAX_METHOD
SESSION_DAYS = Config.SESSION_DAYS
