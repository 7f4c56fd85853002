"""
Health check API route
"""

from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException

from blog_api.database.connection import get_document_store

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check - reports the document store connectivity"""
    try:
        store = get_document_store()
        reachable = await store.ping()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=f"Health check failed: {str(e)}")

    if not reachable:
        raise HTTPException(status_code=503, detail="Health check failed: database unreachable")

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": store.database_name
    }
