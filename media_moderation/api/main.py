"""FastAPI backend exposing the moderated records.

Read-only views over the analytical store that the persist-record
pipeline writes to:
- GET /records/recent
- GET /records/quarantined
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Query

from media_moderation.lib.config import PipelineConfig
from media_moderation.lib.database import DatabaseConnection


app = FastAPI(title="Media Moderation API", version="0.1.0")


@lru_cache(maxsize=1)
def get_store() -> DatabaseConnection:
    config = PipelineConfig.from_env()
    return DatabaseConnection(config.database_url, schema=config.dataset_id, table=config.table_name)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/records/recent")
def records_recent(
    limit: int = Query(default=100, ge=1, le=500),
    store: DatabaseConnection = Depends(get_store),
) -> List[Dict[str, Any]]:
    return store.get_recent_records(limit=limit)


@app.get("/records/quarantined")
def records_quarantined(
    limit: int = Query(default=100, ge=1, le=500),
    store: DatabaseConnection = Depends(get_store),
) -> List[Dict[str, Any]]:
    return store.get_quarantined_records(limit=limit)
