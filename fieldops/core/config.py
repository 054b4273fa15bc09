from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "fieldops"
    DB_PASSWORD: str = "fieldops_password"
    DB_NAME: str = "fieldops_db"
    DB_ECHO: bool = False

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Store calls
    STORE_TIMEOUT_SECONDS: float = 10.0  # Per-statement timeout (PostgreSQL only)

    # Scheduling policy
    WORKDAY_HOURS: float = 8.0  # Theoretical available hours per day for utilization

    # URLs
    FRONTEND_URL: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file

settings = Settings()
