"""GET /api/health: system dependency check."""
import logging
from pathlib import Path

from fastapi import APIRouter
from sqlalchemy import text

from config import settings
from core.database import engine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    db_status = _check_database()
    tpl_status = _check_templates()
    overall = "ok" if db_status["status"] == "up" and tpl_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "database":  db_status,
            "templates": tpl_status,
        },
    }


def _check_database() -> dict:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "up", "dialect": engine.dialect.name}
    except Exception as e:
        logger.warning("Metadata database unreachable: %s", e)
        return {"status": "down", "error": str(e)}


def _check_templates() -> dict:
    path = Path(settings.TEMPLATE_DIR)
    if not path.is_dir():
        return {"status": "down", "error": f"Template directory {path} not found"}
    return {"status": "up", "path": str(path)}
