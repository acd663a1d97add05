"""
Configuration module for the application.
All configuration values are read from environment variables
(a .env file is loaded by the package before this module is used).
"""
import os
import secrets
import warnings


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value else default


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name, "")
    return value.lower() == "true" if value else default


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.FLASK_DEBUG: bool = _bool_env("FLASK_DEBUG")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Generate a development SECRET_KEY if not set and in development mode
        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: str = os.getenv("DB_PORT", "3306")
        self.DB_NAME: str = os.getenv("DB_NAME", "quizdesk")
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        self.SQLALCHEMY_ECHO: bool = _bool_env("SQLALCHEMY_ECHO")

        # API Configuration
        self.API_PREFIX: str = os.getenv("API_PREFIX", "/api").rstrip("/")

        # Session Configuration
        self.SESSION_COOKIE_SECURE: bool = _bool_env("SESSION_COOKIE_SECURE")
        self.SESSION_COOKIE_HTTPONLY: bool = _bool_env("SESSION_COOKIE_HTTPONLY", True)
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
        self.SESSION_LIFETIME_HOURS: int = _int_env("SESSION_LIFETIME_HOURS", 8)

        # Registration
        self.MIN_PASSWORD_LENGTH: int = _int_env("MIN_PASSWORD_LENGTH", 6)
        self.BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)
        self.ADMIN_SECRET: str = os.getenv("ADMIN_SECRET", "")
        self.TEACHER_SECRET: str = os.getenv("TEACHER_SECRET", "")

        # Quizzes and groups
        self.LEADERBOARD_SIZE: int = _int_env("LEADERBOARD_SIZE", 10)
        self.GROUP_CODE_LENGTH: int = _int_env("GROUP_CODE_LENGTH", 7)
        self.ACCESS_CODE_LENGTH: int = _int_env("ACCESS_CODE_LENGTH", 8)

        # Rate limiting
        self.RATE_LIMIT_ENABLED: bool = _bool_env("RATE_LIMIT_ENABLED", True)
        self.LOGIN_RATE_LIMIT: int = _int_env("LOGIN_RATE_LIMIT", 10)
        self.SUBMIT_RATE_LIMIT: int = _int_env("SUBMIT_RATE_LIMIT", 30)

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """DATABASE_URL if given, otherwise a MySQL URI built from the DB_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            "?charset=utf8mb4"
        )

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY and self.FLASK_ENV == "production":
            raise ValueError(
                "SECRET_KEY environment variable is required in production. "
                "Set it in your .env file or environment variables."
            )
        if self.LEADERBOARD_SIZE <= 0:
            raise ValueError("LEADERBOARD_SIZE must be a positive integer")


# Global config instance - will be re-initialized after load_dotenv()
config = Config()
