# ==========================================================================================================
# -------------- Configuration file for CES Agritech Flask application -------------------------------------
# ==========================================================================================================
import os
from dotenv import load_dotenv


if os.environ.get("FLASK_ENV") != "production":
    load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _database_url():
    url = os.getenv("DATABASE_URL")
    if not url:
        url = f"sqlite:///{os.path.join(basedir, 'instance', 'cesagritech.db')}"

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+pg8000://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+pg8000://", 1)
    return url


class Config:

    SECRET_KEY = os.getenv("SECRET_KEY")
    if not SECRET_KEY:
        raise ValueError("SECRET_KEY must be set")

    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = os.getenv("DEBUG", "False").lower() in ("true", "1", "t")
    TESTING = False

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # Transactional email (Resend HTTP API)
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    RESEND_BASE_URL = os.getenv("RESEND_BASE_URL", "https://api.resend.com")
    NOTIFICATION_SENDER = os.getenv("NOTIFICATION_SENDER", "CES Agritech <notifications@resend.dev>")
    REQUEST_TIMEOUT_SECONDS = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

    APP_BASE_URL = os.getenv("APP_BASE_URL", "https://cesagritech.com")
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(basedir, "instance", "media"))
    MAX_CONTENT_LENGTH = 20 * 1024 * 1024

    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GHS")
    DEFAULT_VISIT_LOCATION = os.getenv("DEFAULT_VISIT_LOCATION", "Kade, Eastern Region")


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RESEND_API_KEY = "test-key"
    UPLOAD_FOLDER = os.path.join(basedir, "instance", "test-media")
