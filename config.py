"""Settings per environment; every value can be overridden from ``.env``."""

import os
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent
load_dotenv()


def _int_env(name, default):
    return int(os.getenv(name, str(default)))


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-this-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{(BASE_DIR / 'instance' / 'clubs.db').as_posix()}",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "campusclubs.log")
    LOG_MAX_BYTES = _int_env("LOG_MAX_BYTES", 1_000_000)
    LOG_BACKUP_COUNT = _int_env("LOG_BACKUP_COUNT", 3)

    ITEMS_PER_PAGE = _int_env("ITEMS_PER_PAGE", 12)
    MAX_ITEMS_PER_PAGE = _int_env("MAX_ITEMS_PER_PAGE", 100)

    # failed logins allowed per client address inside the sliding window
    LOGIN_MAX_ATTEMPTS = _int_env("LOGIN_MAX_ATTEMPTS", 5)
    LOGIN_WINDOW_SECONDS = _int_env("LOGIN_WINDOW_SECONDS", 300)


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    DEBUG = False
    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOGIN_MAX_ATTEMPTS = 3
    LOGIN_WINDOW_SECONDS = 60
