import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

    # Comma separated list, "*" allows any origin
    CORS_ORIGINS = [origin.strip() for origin in os.environ.get("CORS_ORIGINS", "*").split(",")]

    # Database config (defaults allow local run without crashing)
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", 3306))
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_NAME = os.environ.get("DB_NAME", "groupsplit")
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", 10))

    # "shares" or "payers", see groupsplit.balances
    BALANCE_STRATEGY = os.environ.get("BALANCE_STRATEGY", "shares")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

config = Config()
