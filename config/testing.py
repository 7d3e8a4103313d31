from config.config import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
SCHEDULER_ENABLED = False
TELEGRAM_BOT_TOKEN = None
