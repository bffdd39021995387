from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Medical Practice API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = False
    PORT: int = 5000

    # Database - PostgreSQL connection parts, overridable as a single URL
    DB_HOST: str = "localhost"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "0000"
    DB_NAME: str = "medical_db"
    DB_PORT: int = 5432
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: str = "sqlite:///./test.db"

    # Security
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Redis (auth endpoint throttling)
    REDIS_URL: str = "redis://localhost:6379"
    RATE_LIMIT_PER_HOUR: int = 10

    # CORS / hosts
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://testserver"]
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]

    @property
    def get_database_url(self) -> str:
        """Return the appropriate database URL based on if we're testing"""
        if self.TESTING:
            return self.TEST_DATABASE_URL
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()
