
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Bizcore API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"

    # Database: either a full URL, or discrete PostgreSQL connection parameters
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_host: str | None = Field(default=None, alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    db_name: str = Field(default="bizcore", alias="DB_NAME")
    db_user: str = Field(default="postgres", alias="DB_USER")
    db_password: str = Field(default="", alias="DB_PASSWORD")

    # Session tokens
    jwt_secret: str | None = Field(default=None, alias="JWT_SECRET")
    jwt_expires_in: str = Field(default="7d", alias="JWT_EXPIRES_IN")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def sqlalchemy_url(self) -> str:
        """DATABASE_URL wins; otherwise compose an asyncpg URL from DB_* parts."""
        if self.database_url:
            return self.database_url
        if self.db_host:
            return (
                f"postgresql+asyncpg://"
                f"{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}"
                f"/{self.db_name}"
            )
        return "sqlite+aiosqlite:///./bizcore_dev.db"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

settings = Settings()
