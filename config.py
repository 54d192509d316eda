"""Runtime settings read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    database_url: str
    token_ttl_hours: int
    assistant_delay: float
    export_folder: str
    s3_bucket: str | None
    aws_region: str
    log_level: str


def get_settings() -> Settings:
    # Default to local SQLite, but allow override for a hosted Postgres
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///finance_tracker.db"),
        token_ttl_hours=int(os.getenv("TOKEN_TTL_HOURS", "24")),
        assistant_delay=float(os.getenv("ASSISTANT_DELAY", "0.8")),
        export_folder=os.getenv("EXPORT_FOLDER", "exports"),
        s3_bucket=os.getenv("S3_BUCKET") or None,
        aws_region=os.getenv("AWS_REGION", "us-east-1"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | None = None) -> None:
    """Set the root logger format and level once per process."""
    level_name = level or get_settings().log_level
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
