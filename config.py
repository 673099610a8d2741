"""
Cấu hình ứng dụng.

Giá trị lấy từ biến môi trường (file ``.env`` được nạp bằng python-dotenv).
Môi trường dev mặc định dùng file SQLite cạnh module này.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent


def _bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret")

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'procurement.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # số cấp duyệt cho yêu cầu vật tư và PO
    APPROVAL_LEVELS = int(os.getenv("APPROVAL_LEVELS", "3"))
    RFQ_MIN_SUPPLIERS = int(os.getenv("RFQ_MIN_SUPPLIERS", "2"))

    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Flask-Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@procurement.local")
    MAIL_SUPPRESS_SEND = _bool("MAIL_SUPPRESS_SEND", False)


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "DEBUG"
    MAIL_SUPPRESS_SEND = True
