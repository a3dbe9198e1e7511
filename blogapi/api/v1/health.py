import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import get_db
from ...middleware.ratelimit import rate_limit

logger = logging.getLogger(__name__)

# Grupo público: passa pelo rate limiter
router = APIRouter(dependencies=[Depends(rate_limit)])


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    service = request.app.state.settings.PROJECT_NAME
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": service, "error": "database unavailable"},
        )
    return {"status": "healthy", "service": service}
