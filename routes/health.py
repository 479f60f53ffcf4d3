from datetime import datetime

from fastapi import APIRouter

router = APIRouter(prefix="/api/health", tags=["Health"])


@router.get("")
def health_check():
    return {"success": True, "message": "Server is running", "timestamp": datetime.utcnow().isoformat()}
