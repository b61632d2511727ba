"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # CSRF is enforced for form posts; JSON clients send the X-CSRFToken header
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'quotegen')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'quotegen')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'quotegen')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Company branding defaults (used until an administrator saves branding)
    COMPANY_NAME = os.getenv('COMPANY_NAME', 'Rogers Capital Technology Services Ltd')
    COMPANY_ADDRESS = os.getenv(
        'COMPANY_ADDRESS',
        '5, President John Kennedy Street\nPort Louis, Republic of Mauritius'
    )
    COMPANY_CONTACT = os.getenv('COMPANY_CONTACT', '+(230) 211 7801')
    COMPANY_EMAIL = os.getenv('COMPANY_EMAIL', 'mcs_sales@rogerscapital.mu')
    COMPANY_LOGO_URL = os.getenv('COMPANY_LOGO_URL', '/static/logo.svg')  # served from quotegen/static
    PRIMARY_COLOR = os.getenv('PRIMARY_COLOR', '#3b82f6')

    # Quotes
    CURRENCY_CODE = os.getenv('CURRENCY_CODE', 'MUR')
    QUOTE_VALID_DAYS = int(os.getenv('QUOTE_VALID_DAYS', '30'))
    DEFAULT_CONTRACT_MONTHS = int(os.getenv('DEFAULT_CONTRACT_MONTHS', '12'))
    CONTRACT_TERMS = (12, 24, 36, 48, 60)
    QUOTE_NUMBER_MAX_ATTEMPTS = int(os.getenv('QUOTE_NUMBER_MAX_ATTEMPTS', '5'))
    # 'columns' writes the explicit service/feature linkage, 'notes' embeds it
    # in the notes field for stores that predate the linkage columns
    QUOTE_LINKAGE_MODE = os.getenv('QUOTE_LINKAGE_MODE', 'columns')

    # Document templates
    DEFAULT_DOCUMENT_TEMPLATE = os.getenv('DEFAULT_DOCUMENT_TEMPLATE', 'standard')
    TEMPLATE_STRICT_TOKENS = os.getenv('TEMPLATE_STRICT_TOKENS', 'false').lower() == 'true'

    # PDF export
    EXPORT_SCALE = int(os.getenv('EXPORT_SCALE', '2'))
    EXPORT_ASSET_TIMEOUT = float(os.getenv('EXPORT_ASSET_TIMEOUT', '10'))  # seconds
    EXPORT_VIEWPORT_WIDTH = int(os.getenv('EXPORT_VIEWPORT_WIDTH', '794'))  # A4 @ 96dpi

    # Logo upload constraints
    MAX_LOGO_SIZE = int(os.getenv('MAX_LOGO_SIZE', 1024 * 1024))  # 1MB
    ALLOWED_LOGO_MIME_TYPES = {
        'image/jpeg',
        'image/png',
        'image/gif',
        'image/webp'
    }

    # Email configuration
    MAIL_SERVER = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('SMTP_PORT', 587))
    MAIL_USE_TLS = True
    MAIL_USE_SSL = False
    MAIL_USERNAME = os.getenv('SMTP_USER') or ''
    MAIL_PASSWORD = os.getenv('SMTP_PASSWORD') or ''
    MAIL_DEFAULT_SENDER = (
        os.getenv('SMTP_FROM')
        or MAIL_USERNAME
        or 'no-reply@localhost'
    )
    MAIL_SUPPRESS_SEND = False

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestConfig(Config):
    """Configuration for the test suite (in-memory SQLite, no CSRF, no mail)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    WTF_CSRF_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    SENTRY_DSN = None
    EXPORT_ASSET_TIMEOUT = 1.0
