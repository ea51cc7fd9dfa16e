from fastapi import APIRouter
from .cleanup import router as cleanup_router
from .generate import router as generate_router

router = APIRouter(prefix="/v1")

@router.get("/", tags=["meta"])
def root() -> dict[str, str]:
    return {"service": "genstudio", "version": "v1"}

router.include_router(cleanup_router)
router.include_router(generate_router)
