import os

from config.config import *  # noqa: F401,F403
from config.config import _flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DEBUG = False

AUTO_INIT_DB = _flag("AUTO_INIT_DB", "0")
# Run exactly one scheduler process per deployment; web workers should set this to 0.
SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "0")
