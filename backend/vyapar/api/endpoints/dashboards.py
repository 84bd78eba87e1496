# FILE: backend/vyapar/api/endpoints/dashboards.py

from fastapi import APIRouter, Depends
from typing import Annotated
from pymongo.database import Database

from ...core.db import get_db
from ...models.dashboard import DashboardView
from ...models.user import UserInDB
from ...services import dashboard_service
from .dependencies import get_current_user

router = APIRouter()

@router.get("/me", response_model=DashboardView)
def get_my_dashboard(
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
):
    """One-shot projection for the caller's role. /stream/dashboard pushes the same shape live."""
    return dashboard_service.build_dashboard(db, current_user)
