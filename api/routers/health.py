# File: api/routers/health.py
from fastapi import APIRouter


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "ScholarVault API"}
