"""Layered config: SQLite → .env → defaults.

Usage:
    from clinote.config_store import get_config_store

    store = get_config_store()
    enabled = store.get_bool("analysis_enabled")
    analysis = store.get_analysis_config()
"""

import logging

from clinote.config import AnalysisConfig, settings
from clinote.models import GlobalSetting

logger = logging.getLogger(__name__)

# Keys stored in global_settings, with their .env fallback attribute names
_GLOBAL_KEYS = {
    "analysis_enabled": "analysis_enabled",
    "analysis_url": "analysis_url",
    "max_questions": "max_questions",
    "max_suggestions": "max_suggestions",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigStore:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Global settings
    # ------------------------------------------------------------------

    def get_global(self, key: str) -> str | None:
        with self._session_factory() as session:
            row = session.query(GlobalSetting).filter_by(key=key).first()
            if row and row.value is not None:
                return row.value
        # Fall back to .env / defaults
        return str(getattr(settings, _GLOBAL_KEYS.get(key, key), "")) or None

    def get_bool(self, key: str) -> bool:
        return (self.get_global(key) or "").strip().lower() in _TRUE_VALUES

    def get_int(self, key: str, default: int) -> int:
        value = self.get_global(key)
        try:
            return int(value) if value else default
        except ValueError:
            logger.warning("Ignoring non-integer value %r for setting '%s'", value, key)
            return default

    def get_all_globals(self) -> dict[str, str]:
        result = {}
        for key in _GLOBAL_KEYS:
            result[key] = self.get_global(key) or ""
        return result

    def set_global(self, key: str, value: str):
        with self._session_factory() as session:
            row = session.query(GlobalSetting).filter_by(key=key).first()
            if row:
                row.value = value
            else:
                session.add(GlobalSetting(key=key, value=value))
            session.commit()

    def save_globals(self, data: dict[str, str]):
        with self._session_factory() as session:
            for key, value in data.items():
                if key not in _GLOBAL_KEYS:
                    continue
                row = session.query(GlobalSetting).filter_by(key=key).first()
                if row:
                    row.value = value
                else:
                    session.add(GlobalSetting(key=key, value=value))
            session.commit()

    def get_analysis_config(self) -> AnalysisConfig:
        config = settings.get_analysis_config()
        config.enabled = self.get_bool("analysis_enabled")
        config.url = self.get_global("analysis_url") or config.url
        return config

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_from_env(self):
        with self._session_factory() as session:
            existing = session.query(GlobalSetting).count()
            if existing > 0:
                return  # Already seeded

            logger.info("Seeding global_settings from .env")
            for key, attr in _GLOBAL_KEYS.items():
                val = str(getattr(settings, attr, ""))
                if val:
                    session.add(GlobalSetting(key=key, value=val))

            session.commit()
            logger.info("Seeded %d global setting(s) from .env", len(_GLOBAL_KEYS))


# Module-level singleton, initialized lazily after database.py sets up SessionLocal
_config_store: ConfigStore | None = None


def get_config_store() -> ConfigStore:
    global _config_store
    if _config_store is None:
        from clinote.database import SessionLocal
        _config_store = ConfigStore(SessionLocal)
    return _config_store
