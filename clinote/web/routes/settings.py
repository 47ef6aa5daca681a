"""Settings routes: view/edit the runtime overrides stored in SQLite."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field

from clinote.config_store import get_config_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings")


class GlobalSettingsBody(BaseModel):
    analysis_enabled: bool | None = None
    analysis_url: str | None = None
    max_questions: int | None = Field(default=None, ge=1, le=20)
    max_suggestions: int | None = Field(default=None, ge=1, le=20)


@router.get("/")
def settings_page():
    return get_config_store().get_all_globals()


@router.post("/global")
def save_global(body: GlobalSettingsBody):
    store = get_config_store()
    data = {
        key: str(value).lower() if isinstance(value, bool) else str(value)
        for key, value in body.model_dump(exclude_none=True).items()
    }
    store.save_globals(data)
    logger.info("Global settings updated: %s", ", ".join(sorted(data)) or "(none)")
    return store.get_all_globals()
