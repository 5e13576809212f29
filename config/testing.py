import os

from config.config import DB_CONFIG, PAYROLL  # noqa: F401
from config.config import ATTENDANCE as _ATTENDANCE

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

LOG_LEVEL = "DEBUG"

# Never spawn the background sweep under tests
ATTENDANCE = dict(_ATTENDANCE, start_scheduler=False)

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
