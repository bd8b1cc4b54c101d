from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from dependencies.providers import get_gateway
from schemas.common import ERROR_RESPONSES, error_body
from services.airtable_gateway import AirtableGateway

router = APIRouter(prefix="/api", tags=["Supervisores"], responses=ERROR_RESPONSES)


# ✅ [READ] supervisors (record ID, name, active flag)
@router.get("/supervisores")
async def list_supervisores(
    activos: bool = Query(False, description="only supervisors flagged as active"),
    gateway: AirtableGateway = Depends(get_gateway),
):
    supervisores = await gateway.list_supervisores()
    if activos:
        supervisores = [s for s in supervisores if s.activo]
    return {"ok": True, "records": [s.model_dump() for s in supervisores]}


# ✅ [READ] one supervisor by token (record ID) + assigned projects
@router.get("/supervisor")
async def get_supervisor(
    id: Optional[str] = Query(None),
    gateway: AirtableGateway = Depends(get_gateway),
):
    supervisor_id = (id or "").strip()
    if not supervisor_id:
        return JSONResponse(status_code=400, content=error_body("Falta el parámetro 'id'."))

    detalle = await gateway.get_supervisor(supervisor_id)
    return {"ok": True, **detalle.model_dump(by_alias=True)}
