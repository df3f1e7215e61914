"""Environment-driven settings for the registration engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite+pysqlite:///:memory:"
DEFAULT_EXPORT_DIR = "."
# Target pre-filled in the operator's draw settings.
DEFAULT_TARGET_NUMBER = 100
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration.

    Attributes
    ----------
    db_url : str
        SQLAlchemy database URL. Relative SQLite paths are resolved against
        the project root.
    export_dir : Path
        Directory that receives spreadsheet exports.
    target_number : int
        Target used when the operator does not supply one.
    log_level : str
        Logging level name applied by the operator scripts.
    """

    db_url: str
    export_dir: Path
    target_number: int
    log_level: str


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``).

    When reading from the process environment a ``.env`` file is loaded first.

    Raises
    ------
    ValueError
        If ``TARGET_NUMBER`` is set but is not an integer.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    db_url = resolve_sqlite_url(environ.get("DB_URL") or DEFAULT_DB_URL, ROOT_DIR)
    export_dir = Path(environ.get("EXPORT_DIR") or DEFAULT_EXPORT_DIR).expanduser()

    raw_target = environ.get("TARGET_NUMBER")
    if raw_target is None or not raw_target.strip():
        target_number = DEFAULT_TARGET_NUMBER
    else:
        try:
            target_number = int(raw_target.strip())
        except ValueError as exc:
            raise ValueError(
                f"Environment variable 'TARGET_NUMBER' must be an integer, got {raw_target!r}"
            ) from exc

    log_level = (environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()

    return Settings(
        db_url=db_url,
        export_dir=export_dir,
        target_number=target_number,
        log_level=log_level,
    )


__all__ = ["Settings", "load_settings", "DEFAULT_DB_URL", "DEFAULT_TARGET_NUMBER"]
