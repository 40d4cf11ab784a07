"""Application settings and validation."""

import os
from pathlib import Path
from typing import List

BASE = Path(__file__).resolve().parent.parent
DEFAULT_SECRET = "change_me_for_prod"


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_ISSUER: str
    JWT_AUDIENCE: str
    JWT_EXPIRE_HOURS: float
    ALLOW_INSECURE_JWT: bool
    DATABASE_URL: str
    CORS_ORIGINS: List[str]
    DB_MAX_RETRIES: int
    DB_MAX_RETRY_DELAY: float
    DB_RETRY_BASE_DELAY: float

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_SECRET)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_ISSUER = os.getenv("JWT_ISSUER", "edusync")
        self.JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "edusync-clients")
        self.JWT_EXPIRE_HOURS = float(os.getenv("JWT_EXPIRE_HOURS", "3"))
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'edusync.db'}")
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
        self.DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", "5"))
        self.DB_MAX_RETRY_DELAY = float(os.getenv("DB_MAX_RETRY_DELAY", "30"))
        self.DB_RETRY_BASE_DELAY = float(os.getenv("DB_RETRY_BASE_DELAY", "0.5"))
        self._validate()

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"

    def _validate(self):
        if not self.is_dev and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == DEFAULT_SECRET:
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.JWT_EXPIRE_HOURS <= 0:
            raise RuntimeError("JWT_EXPIRE_HOURS must be positive")
        if self.DB_MAX_RETRIES < 0:
            raise RuntimeError("DB_MAX_RETRIES must be >= 0")


settings = Settings()
