"""Statistics API router: anonymised global figures and the caller's own averages."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_current_user
from database import models
from database.deps import get_db_read
from services.statistics import statistics_service

router = APIRouter(prefix="/api/statistics", tags=["statistics"])


@router.get("/global")
def global_statistics(user: models.User = Depends(get_current_user), db: Session = Depends(get_db_read)):
    return {"success": True, "data": statistics_service.get_global_statistics(db)}


@router.get("/me")
def my_statistics(days: int = Query(7, ge=1, le=365), insights: bool = Query(True),
                  user: models.User = Depends(get_current_user), db: Session = Depends(get_db_read)):
    """Daily averages over the last `days` days, with AI insights when available."""
    return {"success": True, "data": statistics_service.get_user_statistics(db, user.id, days, insights)}
