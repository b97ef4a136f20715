"""
config.py
---------
Process settings read from the environment.

A .env file in the working directory is loaded first, so local overrides
do not need to be exported by hand.

Variables
- RADIOBIO_REFERENCE_PATH: alternative reference JSON (default: bundled file)
- RADIOBIO_LOG_LEVEL: logging level name (default: INFO)
- RADIOBIO_CORS_ORIGINS: comma separated allowed origins (default: *)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference_path: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Valid levels: {list(_LOG_LEVELS)}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build settings from the environment once per process.

    Call get_settings.cache_clear() to pick up changed variables.
    """
    load_dotenv()
    origins = os.environ.get("RADIOBIO_CORS_ORIGINS", "*")
    return Settings(
        reference_path=os.environ.get("RADIOBIO_REFERENCE_PATH") or None,
        log_level=os.environ.get("RADIOBIO_LOG_LEVEL", "INFO"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
