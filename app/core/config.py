from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Cert Exam Practice"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False

    SECRET_KEY: str = "dev-secret-key-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 2  # 2 days

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_HOST: Optional[str] = None
    DATABASE_PORT: str = "5432"
    DATABASE_USER: Optional[str] = None
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_NAME: Optional[str] = None

    DATABASE_URL: str = "sqlite:///./exam.db"
    TEST_DATABASE_URL: Optional[str] = None

    def __init__(self, **data):
        super().__init__(**data)
        if self.DATABASE_HOST and self.DATABASE_NAME:
            self.DATABASE_URL = (
                f'postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}'
                f'@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}'
            )

    # Question bank
    QUESTION_BANK_DIR: Optional[str] = None  # defaults to the bundled app/data directory
    DEFAULT_CATEGORY: str = "C"
    DEFAULT_EXAM_PROFILE: str = "standard_100"

    # Time limit enforcement (advisory unless enabled)
    ENFORCE_TIME_LIMIT: bool = False
    TIME_LIMIT_GRACE_SECONDS: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"

settings = Settings()
