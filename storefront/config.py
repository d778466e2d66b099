import os
import tempfile
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    # A full URI wins over the postgres_* parts (tests use sqlite://)
    database_uri: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    db_connect_timeout: int = 5
    db_statement_timeout_ms: int = 5000

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    currency: str = "INR"
    gateway_timeout_seconds: float = 10.0

    storage_backend: str = "disk"  # disk | r2
    upload_dir: str = os.path.join(tempfile.gettempdir(), "storefront_uploads")
    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_public_base: Optional[str] = None
    storage_timeout_seconds: float = 10.0
    content_url_expiry_seconds: int = 900
    max_upload_mb: int = 50

    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_url(self):
        if self.database_uri:
            return self.database_uri
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def alembic_url(self):
        # alembic.ini values go through ConfigParser interpolation
        return self.database_url.replace("%", "%%")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
