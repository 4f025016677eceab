"""
Runtime configuration.

Values come from (lowest to highest precedence) the defaults below,
SITECMS_* environment variables (optionally loaded from .env), and CLI flags.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

DEFAULT_PORT = 4000


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_set(value: str) -> FrozenSet[str]:
    return frozenset(v.strip().lower().lstrip(".") for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class Settings:
    posts_file: Path = Path("data/posts.json")
    jobs_file: Path = Path("data/jobs.json")
    upload_dir: Path = Path("uploads")
    upload_prefix: str = "/uploads"
    frontend_dir: Optional[Path] = None
    admin_page: Optional[Path] = None

    # "images" or "legacy"; None fields below fall back to the mode defaults
    upload_mode: str = "images"
    max_upload_bytes: Optional[int] = None
    allowed_extensions: Optional[FrozenSet[str]] = None
    allowed_content_types: Optional[FrozenSet[str]] = None

    strict_validation: bool = False

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_dir: Optional[Path] = field(default=None)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Build settings from SITECMS_* variables; PORT is honoured as a plain override."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        paths = {
            "SITECMS_POSTS_FILE": "posts_file",
            "SITECMS_JOBS_FILE": "jobs_file",
            "SITECMS_UPLOAD_DIR": "upload_dir",
            "SITECMS_FRONTEND_DIR": "frontend_dir",
            "SITECMS_ADMIN_PAGE": "admin_page",
            "SITECMS_LOG_DIR": "log_dir",
        }
        for var, name in paths.items():
            if env.get(var):
                values[name] = Path(env[var])

        if env.get("SITECMS_UPLOAD_PREFIX"):
            values["upload_prefix"] = "/" + env["SITECMS_UPLOAD_PREFIX"].strip("/")
        if env.get("SITECMS_UPLOAD_MODE"):
            values["upload_mode"] = env["SITECMS_UPLOAD_MODE"].strip().lower()
        if env.get("SITECMS_MAX_UPLOAD_BYTES"):
            values["max_upload_bytes"] = int(env["SITECMS_MAX_UPLOAD_BYTES"])
        if env.get("SITECMS_ALLOWED_EXTENSIONS"):
            values["allowed_extensions"] = _env_set(env["SITECMS_ALLOWED_EXTENSIONS"])
        if env.get("SITECMS_ALLOWED_CONTENT_TYPES"):
            values["allowed_content_types"] = _env_set(env["SITECMS_ALLOWED_CONTENT_TYPES"])
        if env.get("SITECMS_STRICT_VALIDATION"):
            values["strict_validation"] = _env_bool(env["SITECMS_STRICT_VALIDATION"])
        if env.get("SITECMS_HOST"):
            values["host"] = env["SITECMS_HOST"]
        if env.get("SITECMS_LOG_LEVEL"):
            values["log_level"] = env["SITECMS_LOG_LEVEL"].upper()

        port = env.get("PORT") or env.get("SITECMS_PORT")
        if port:
            values["port"] = int(port)

        return cls(**values)

    def override(self, **changes: Any) -> "Settings":
        """Return a copy with the non-None `changes` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
