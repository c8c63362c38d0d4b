"""Calendar API router: month view and monthly goal statistics."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from api.deps import get_current_user
from database import models
from database.deps import get_db_read
from services.calendar import calendar_service

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("/data/{year}/{month}")
def get_calendar_data(year: int = Path(..., ge=1970, le=9999), month: int = Path(..., ge=1, le=12),
                      user: models.User = Depends(get_current_user), db: Session = Depends(get_db_read)):
    """Goals vs actual intake for every day of the month, keyed by YYYY-MM-DD."""
    return {"success": True, "data": calendar_service.get_calendar_data(db, user.id, year, month)}


@router.get("/statistics/{year}/{month}")
def get_calendar_statistics(year: int = Path(..., ge=1970, le=9999), month: int = Path(..., ge=1, le=12),
                            user: models.User = Depends(get_current_user), db: Session = Depends(get_db_read)):
    return {"success": True, "data": calendar_service.get_statistics(db, user.id, year, month)}
