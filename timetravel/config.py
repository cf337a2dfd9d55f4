"""
Runtime settings.

Environment Variables:
    TIMETRAVEL_ENGINE: CRDT engine adapter (loro, memory) - default: loro
    TIMETRAVEL_TEXT_FIELD: Text container read after checkout - default: text
    TIMETRAVEL_THROTTLE_MS: Seek throttle window in ms - default: 100
    TIMETRAVEL_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    TIMETRAVEL_LOG_FORMAT: Log format (json, text) - default: json
    METRICS_ENABLED: Enable metrics server (true/false) - default: false
    METRICS_PORT: HTTP port for /metrics endpoint - default: 8080
"""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    engine: Literal["loro", "memory"] = "loro"
    text_field: str = Field(default="text", min_length=1)
    throttle_ms: float = Field(default=100.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    metrics_enabled: bool = False
    metrics_port: int = Field(default=8080, gt=0, lt=65536)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from environment variables.

        Unset variables keep their defaults.

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        env = os.environ if environ is None else environ
        mapping = {
            "engine": "TIMETRAVEL_ENGINE",
            "text_field": "TIMETRAVEL_TEXT_FIELD",
            "throttle_ms": "TIMETRAVEL_THROTTLE_MS",
            "log_level": "TIMETRAVEL_LOG_LEVEL",
            "log_format": "TIMETRAVEL_LOG_FORMAT",
            "metrics_enabled": "METRICS_ENABLED",
            "metrics_port": "METRICS_PORT",
        }
        values = {}
        for field_name, key in mapping.items():
            raw = env.get(key)
            if raw is None or raw == "":
                continue
            if field_name == "log_level":
                raw = raw.upper()
            elif field_name in ("engine", "log_format"):
                raw = raw.lower()
            values[field_name] = raw
        return cls(**values)
