import os
import secrets
import platform
from dotenv import load_dotenv

# Load environment variables from .env file(s)
# 1) Project root .env
load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def ensure_data_directory():
    """Ensure the data directory and its session/db subdirectories exist (cross-platform)"""
    data_dir = os.environ.get('CLASSIFIEDS_DATA_DIR') or os.path.join(basedir, 'data')

    os.makedirs(data_dir, exist_ok=True)
    kuzu_dir = os.path.join(data_dir, 'kuzu')
    sessions_dir = os.path.join(data_dir, 'flask_sessions')
    os.makedirs(kuzu_dir, exist_ok=True)
    os.makedirs(sessions_dir, exist_ok=True)

    # Only set Unix permissions on non-Windows systems
    if platform.system() != "Windows":
        try:
            os.chmod(data_dir, 0o755)
            os.chmod(sessions_dir, 0o755)
        except (OSError, PermissionError):
            # Read-only volumes and foreign-owned dirs keep their current mode
            pass

    return data_dir


data_dir = ensure_data_directory()

# 2) Overlay data/.env so settings saved at runtime persist via the mounted volume
data_env_path = os.path.join(data_dir, '.env')
if os.path.exists(data_env_path):
    load_dotenv(dotenv_path=data_env_path, override=True)


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


class Config:
    DATA_DIR = data_dir

    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        if os.environ.get('FLASK_ENV') == 'development' or os.environ.get('FLASK_DEBUG'):
            SECRET_KEY = secrets.token_hex(32)
            print("WARNING: Using temporary SECRET_KEY for development. Set SECRET_KEY in .env for production!")
        else:
            # Every gunicorn worker must share the same key or sessions break between workers.
            raise ValueError("No SECRET_KEY set for Flask application. Please set it in your .env file.")

    # CSRF
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour
    WTF_CSRF_SSL_STRICT = False

    # Session cookies
    SESSION_COOKIE_SECURE = _env_flag('SESSION_COOKIE_SECURE')
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Flask-Session ('filesystem' or 'redis'); empty falls back to signed cookies
    SESSION_TYPE = os.environ.get('SESSION_TYPE', 'filesystem') or None
    SESSION_USE_SIGNER = True
    SESSION_KEY_PREFIX = 'classifieds:'
    SESSION_FILE_DIR = os.path.join(data_dir, 'flask_sessions')
    SESSION_FILE_THRESHOLD = 500

    # Kuzu database
    KUZU_DB_PATH = os.environ.get('KUZU_DB_PATH') or os.path.join(data_dir, 'kuzu', 'classifieds.kuzu')

    # Site
    SITE_NAME = os.environ.get('SITE_NAME', 'Classifieds')
    ACCOUNT_BASE_PATH = os.environ.get('ACCOUNT_BASE_PATH', 'account').strip('/') or 'account'
    SUPPORTED_LANGUAGES = [('en', 'English'), ('fr', 'Français'), ('fa', 'فارسی')]
    DEFAULT_LANGUAGE = os.environ.get('DEFAULT_LANGUAGE', 'en')
    TIMEZONE = os.environ.get('TIMEZONE') or 'UTC'
    ITEMS_PER_PAGE = int(os.environ.get('DEFAULT_MAX_ITEMS_PER_PAGE') or 10)

    # Login form: which auth fields are offered ('email', 'phone')
    AUTH_FIELDS = ['email', 'phone']
    DEFAULT_AUTH_FIELD = os.environ.get('DEFAULT_AUTH_FIELD', 'email')
    REMEMBER_COOKIE_DURATION = 86400 * 7  # 7 days
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = 'Lax'

    # Two-factor challenge
    TWO_FACTOR_CODE_LENGTH = 6
    TWO_FACTOR_CODE_TTL = int(os.environ.get('TWO_FACTOR_CODE_TTL', 600))

    # Social login providers that can be linked to an account
    SOCIAL_PROVIDERS = ['facebook', 'google', 'linkedin', 'twitter']

    # Headers sent by the no.http.cache guard
    NO_CACHE_HEADERS = {
        'Cache-Control': 'no-store, no-cache, must-revalidate',
        'Pragma': 'no-cache',
        'Expires': 'Sun, 02 Jan 1990 05:00:00 GMT',
    }

    # Public storage: <DOCUMENT_ROOT>/storage/app/public is exposed as <DOCUMENT_ROOT>/public/storage
    DOCUMENT_ROOT = os.environ.get('DOCUMENT_ROOT') or basedir
    AVATAR_MAX_SIZE = int(os.environ.get('AVATAR_MAX_SIZE', 400))
    ALLOWED_PHOTO_EXTENSIONS = ['jpg', 'jpeg', 'png', 'gif', 'webp']
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB max upload

    # Subscription packages seeded on first start
    DEFAULT_PACKAGES = [
        {'name': 'Basic', 'short_name': 'basic', 'price': 0.0, 'currency_code': 'USD',
         'interval_days': 30, 'description': 'Post a few listings for free.'},
        {'name': 'Premium', 'short_name': 'premium', 'price': 9.99, 'currency_code': 'USD',
         'interval_days': 30, 'description': 'More listings, highlighted in search results.'},
        {'name': 'Business', 'short_name': 'business', 'price': 29.99, 'currency_code': 'USD',
         'interval_days': 30, 'description': 'Unlimited listings with a shop page.'},
    ]
    PAYMENT_METHODS = [('offline', 'Offline payment'), ('bank_transfer', 'Bank transfer')]

    # Email settings (two-factor codes, contact notifications)
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_SECURITY = os.environ.get('MAIL_SECURITY', 'starttls').lower()  # 'starttls', 'ssl', 'none'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@classifieds.local')
    MAIL_SUPPRESS_SEND = _env_flag('MAIL_SUPPRESS_SEND')

    # Logging / debug
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'ERROR').upper()
    DEBUG_MODE = _env_flag('CLASSIFIEDS_DEBUG')
    DEBUG_AUTH = _env_flag('CLASSIFIEDS_DEBUG_AUTH')
