# mazao/app_config.py

import logging
import os
from datetime import timedelta


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(app, overrides=None):
    """
    Load all Flask configuration in a clean centralized way.
    `overrides` (a mapping) wins over the environment; tests use it.
    """
    app_env = os.getenv("APP_ENV", "development")
    app.config["APP_ENV"] = app_env

    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv("MONGO_URI", "mongodb://localhost:27017/mazao_erp")
    app.config["MONGO_DB_NAME"] = os.getenv("MONGO_DB_NAME", "mazao_erp")
    # multi-document transactions need a replica set
    app.config["MONGO_TRANSACTIONS"] = _flag("MONGO_TRANSACTIONS", "1")

    # ------------------------------
    # Session cookie / JWT
    # ------------------------------
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "change-me")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        days=int(os.getenv("JWT_EXPIRES_DAYS", "30"))
    )
    app.config["JWT_TOKEN_LOCATION"] = ["cookies"]
    app.config["JWT_ACCESS_COOKIE_NAME"] = "jwt"
    app.config["JWT_ACCESS_COOKIE_PATH"] = "/"
    app.config["JWT_SESSION_COOKIE"] = False
    app.config["JWT_COOKIE_SECURE"] = app_env == "production"
    app.config["JWT_COOKIE_SAMESITE"] = os.getenv("COOKIE_SAMESITE", "Lax")
    app.config["JWT_COOKIE_CSRF_PROTECT"] = _flag("COOKIE_CSRF_PROTECT", "0")

    # ------------------------------
    # Security Keys
    # ------------------------------
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", os.urandom(24))
    app.config["BCRYPT_LOG_ROUNDS"] = int(os.getenv("BCRYPT_LOG_ROUNDS", "12"))

    # ------------------------------
    # Frontend / logging
    # ------------------------------
    app.config["FRONTEND_URL"] = os.getenv("FRONTEND_URL", "http://localhost:5173")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()

    # ------------------------------
    # Seed admin
    # ------------------------------
    app.config["ADMIN_EMAIL"] = os.getenv("ADMIN_EMAIL", "shamba@admin.com")
    app.config["ADMIN_PASSWORD"] = os.getenv("ADMIN_PASSWORD", "12345678")
    app.config["ADMIN_FULL_NAME"] = os.getenv("ADMIN_FULL_NAME", "Mazao ERP Administrator")
    app.config["ADMIN_LOCATION"] = os.getenv("ADMIN_LOCATION", "Nairobi, Kenya")
    app.config["ADMIN_CONTACT"] = os.getenv("ADMIN_CONTACT", "+254758492438")

    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"], logging.INFO))
    app.logger.info("Config loaded (env=%s)", app.config["APP_ENV"])
