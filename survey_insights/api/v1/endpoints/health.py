# survey_insights/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends, HTTPException

from survey_insights.db.session import Store, get_store

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

@router.get("/health/db")
def health_db(store: Store = Depends(get_store)):
    if not store.check_connection():
        raise HTTPException(status_code=503, detail="Database unreachable")
    return {"db": "ok"}
