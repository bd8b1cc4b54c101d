from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from dependencies.providers import get_gateway
from schemas.common import ERROR_RESPONSES, error_body
from services.airtable_gateway import AirtableGateway
from services.form_state import BitacoraFormState

router = APIRouter(prefix="/api", tags=["Formulario"], responses=ERROR_RESPONSES)


# ✅ [READ] initial form state for a supervisor (single project preselected)
@router.get("/formulario")
async def get_formulario(
    supervisor: Optional[str] = Query(None, description="supervisor record ID"),
    gateway: AirtableGateway = Depends(get_gateway),
):
    supervisor_id = (supervisor or "").strip()
    if not supervisor_id:
        return JSONResponse(status_code=400, content=error_body("Falta el parámetro 'supervisor'."))

    formulario = BitacoraFormState()
    formulario.load_supervisor(await gateway.get_supervisor(supervisor_id))
    return {
        "ok": True,
        "formulario": formulario.model_dump(by_alias=True),
        "pendientes": formulario.validar(),
    }
