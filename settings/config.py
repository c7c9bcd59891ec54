"""Конфигурация приложения из env переменных"""
from pathlib import Path

from environs import Env


# Load environment variables
env = Env()

STAND = env.str('STAND', default='local')
BASE_PATH = Path.cwd().absolute()

if STAND == 'local':
    env.read_env(path=str(BASE_PATH / '.env'))

class Settings:
    def __init__(self):
        # Database (local key-value substrate)
        self.DB_URL: str = env.str("DB_URL", f"sqlite+aiosqlite:///{BASE_PATH / 'bmi_history.db'}")

        # App
        self.DEBUG: bool = env.bool("DEBUG", False)

        # SENTRY
        self.SENTRY_DSN: str = env.str("SENTRY_DSN", "")

        # History persistence
        self.HISTORY_STORAGE_KEY: str = env.str("HISTORY_STORAGE_KEY", "@bmi_history_v2")
        self.HISTORY_DATE_FORMAT: str = env.str("HISTORY_DATE_FORMAT", "%d %b")

AppConfig = Settings()
