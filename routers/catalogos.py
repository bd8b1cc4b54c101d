from fastapi import APIRouter

from services import catalogos

router = APIRouter(prefix="/api", tags=["Catálogos"])


# ✅ [READ] activity rosters and incident options for the form
@router.get("/catalogos")
def get_catalogos():
    return {"ok": True, **catalogos.as_dict()}
