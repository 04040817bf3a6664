from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    """Liveness check. Does not contact the note service."""
    return {"status": "healthy", "service": "menunotes"}
