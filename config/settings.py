# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(..., validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(..., validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(..., validation_alias="TRUST_PROXY")

    # OpenAI Settings (missing key is reported per batch, not at boot)
    OPENAI_API_KEY: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    OPENAI_API_URL: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_API_URL"
    )
    OPENAI_CHAT_MODEL: str = Field(
        default="gpt-4-turbo-preview", validation_alias="OPENAI_CHAT_MODEL"
    )
    OPENAI_TTS_MODEL: str = Field(default="tts-1", validation_alias="OPENAI_TTS_MODEL")
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=60.0, validation_alias="PROVIDER_TIMEOUT_SECONDS"
    )

    # Batch pipeline
    DEFAULT_LANGUAGE: str = Field(default="chinese", validation_alias="DEFAULT_LANGUAGE")
    PROGRESS_RESET_SECONDS: float = Field(
        default=5.0, validation_alias="PROGRESS_RESET_SECONDS"
    )
    # When set, group streams are fetched from this service instead of in-process.
    GENERATION_SERVICE_URL: Optional[str] = Field(
        default=None, validation_alias="GENERATION_SERVICE_URL"
    )

    # Logging knobs
    LOGGER_NAME: str = "vocab-voice"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
