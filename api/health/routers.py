"""
Health check endpoint.
"""
from fastapi import APIRouter

from api.common.utils import now_local

router = APIRouter()


@router.get("/health")
def health_check():
    """Liveness probe; does not touch Firestore."""
    return {"status": "OK", "timestamp": now_local().isoformat()}
