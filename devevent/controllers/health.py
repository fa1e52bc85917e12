from fastapi import APIRouter
from typing import Dict

from devevent.db.core import get_connection_cache

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, str]:
    database = get_connection_cache().database
    db_status = "disconnected"
    if database is not None:
        try:
            await database.command("ping")
            db_status = "healthy"
        except Exception:
            db_status = "unhealthy"

    return {"status": "ok", "database": db_status}
