SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "dandori_portal_test",
}

# In-memory SQLite; Flask-SQLAlchemy shares one connection for ":memory:"
SQLALCHEMY_DATABASE_URI = "sqlite://"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = True
AUTO_SEED_DB = False

BATCH_API_KEY = "test-batch-key"
WORK_START = "09:00"
WORK_END = "18:00"
LATE_GRACE_MINUTES = 0
PAYROLL_TAX_METHOD = "annualized"
SESSION_DAYS = 7
