from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Concierge Daily Summary API", alias="APP_NAME")
    app_env: str = Field(default="local", alias="APP_ENV")
    debug: bool = Field(default=True, alias="DEBUG")

    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_host: str = Field(default="localhost", alias="DB_HOST")
    db_port: int = Field(default=3306, alias="DB_PORT")
    db_user: str = Field(default="concierge_user", alias="DB_USER")
    db_password: str = Field(default="concierge_pass", alias="DB_PASSWORD")
    db_name: str = Field(default="concierge_db", alias="DB_NAME")
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, alias="DB_MAX_OVERFLOW")

    daily_summary_enabled: bool = Field(default=True, alias="DAILY_SUMMARY_ENABLED")
    daily_summary_interval_seconds: int = Field(
        default=60,
        alias="DAILY_SUMMARY_INTERVAL_SECONDS",
    )
    daily_summary_window_hours: int = Field(default=24, alias="DAILY_SUMMARY_WINDOW_HOURS")
    daily_summary_example_limit: int = Field(default=10, alias="DAILY_SUMMARY_EXAMPLE_LIMIT")
    daily_summary_upcoming_limit: int = Field(default=5, alias="DAILY_SUMMARY_UPCOMING_LIMIT")
    daily_summary_default_timezone: str = Field(
        default="Europe/London",
        alias="DAILY_SUMMARY_DEFAULT_TIMEZONE",
    )
    daily_summary_default_time: str = Field(default="09:00", alias="DAILY_SUMMARY_DEFAULT_TIME")

    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_base_url: str = Field(default="https://api.resend.com", alias="RESEND_BASE_URL")
    email_from: str = Field(
        default="VioConcierge <noreply@smartaisolutions.ai>",
        alias="EMAIL_FROM",
    )
    email_timeout: float = Field(default=10.0, alias="EMAIL_TIMEOUT")
    email_mock_mode: bool = Field(default=True, alias="EMAIL_MOCK_MODE")
    dashboard_base_url: str = Field(default="http://localhost:5173", alias="DASHBOARD_BASE_URL")

    jwt_secret_key: str = Field(default="concierge-admin-secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    model_config = SettingsConfigDict(
        env_file=(".env", ),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def sqlalchemy_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
            f"?charset=utf8mb4"
        )


settings = Settings()
