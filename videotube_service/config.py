# config.py
import os

from dotenv import load_dotenv
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Load .env variables
load_dotenv(os.getenv("ENV_PATH", ".env"))


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./videotube.db"

    access_token_secret: str = "secret"
    access_token_expire_minutes: int = 60
    refresh_token_secret: str = "refresh-secret"
    refresh_token_expire_days: int = 10

    upload_dir: str = os.path.join(os.getcwd(), "uploads")
    media_url_prefix: str = "/media"

    cors_origins: str = "*"
    log_level: str = "INFO"

    # When false, cascade steps commit one by one and a failure leaves orphans
    atomic_cascades: bool = True
    max_page_limit: int = 100

    # used to read video durations; missing binary means duration 0
    ffprobe_bin: str = "ffprobe"

    port: int = 8000

    @property
    def cors_origin_list(self):
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
