"""Environment-driven settings for the EPF service."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from backend.core.epf_timeline import DEFAULT_ANNUAL_RATE
from backend.schemas.epf import DEFAULT_DATE_FORMAT

load_dotenv()

DEFAULT_DB_PATH = Path(__file__).with_name("epf.db")
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Config:
    EPF_DATABASE: str = str(DEFAULT_DB_PATH)
    EPF_ANNUAL_RATE: float = DEFAULT_ANNUAL_RATE
    EPF_DATE_FORMAT: Optional[str] = DEFAULT_DATE_FORMAT
    CORS_ORIGINS: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        defaults = cls()
        origins = os.environ.get("CORS_ORIGINS")
        return cls(
            EPF_DATABASE=os.environ.get("EPF_DATABASE", defaults.EPF_DATABASE),
            EPF_ANNUAL_RATE=float(os.environ.get("EPF_ANNUAL_RATE", defaults.EPF_ANNUAL_RATE)),
            EPF_DATE_FORMAT=os.environ.get("EPF_DATE_FORMAT", defaults.EPF_DATE_FORMAT),
            CORS_ORIGINS=_split_origins(origins) if origins else defaults.CORS_ORIGINS,
            LOG_LEVEL=os.environ.get("LOG_LEVEL", defaults.LOG_LEVEL).upper(),
        )

    def as_dict(self) -> dict:
        return asdict(self)
