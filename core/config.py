from decouple import config, Csv

class Settings:
    # Database Configuration
    DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///./catalog.db")
    SQL_ECHO: bool = config("SQL_ECHO", default=False, cast=bool)

    # Security Configuration
    SECRET_KEY: str = config("SECRET_KEY", default="your-secret-key-here-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=30, cast=int)
    SESSION_LIFETIME_HOURS: int = config("SESSION_LIFETIME_HOURS", default=24, cast=int)

    # CORS Configuration
    CORS_ORIGINS: list = config(
        "CORS_ORIGINS",
        default="http://localhost:3000,http://127.0.0.1:3000",
        cast=Csv()
    )

    # Environment
    ENVIRONMENT: str = config("ENVIRONMENT", default="development")
    DEBUG: bool = config("DEBUG", default=True, cast=bool)

    # Logging
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")

settings = Settings()
