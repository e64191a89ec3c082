import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-jwt-secret")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-only-jwt-refresh-secret")

    # SQLite file next to the app unless DATABASE_URL points at Postgres
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "royalhealth.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # HTTP surface
    API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
    PORT = int(os.getenv("PORT", "3001"))
    CORS_ORIGIN = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Token lifetimes
    ACCESS_TOKEN_SECONDS = 60 * 60                  # 1 hour
    REMEMBER_ME_TOKEN_SECONDS = 7 * 24 * 60 * 60    # 7 days
    REFRESH_TOKEN_SECONDS = 7 * 24 * 60 * 60        # 7 days

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Account lockout
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 120

    # Cancellation policy
    CANCEL_CUTOFF_HOURS = 2

    # Appointment wall-clock times are Lagos time (WAT)
    APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Africa/Lagos")

    # Password reset
    PASSWORD_RESET_TTL_MINUTES = 10

    # Dev default: accounts are active and verified right after registration
    REQUIRE_EMAIL_VERIFICATION = _env_bool("REQUIRE_EMAIL_VERIFICATION", "false")

    # Simulated gateways succeed this often
    PAYMENT_SUCCESS_RATE = float(os.getenv("PAYMENT_SUCCESS_RATE", "0.9"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", "true")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
