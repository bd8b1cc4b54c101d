from typing import Optional

from fastapi import APIRouter, Depends, Query

from config.settings import Settings, get_settings
from dependencies.providers import get_gateway, get_submission_service
from schemas.common import ERROR_RESPONSES
from schemas.reportes import ReportePayload
from services.airtable_gateway import AirtableGateway
from services.form_state import BitacoraFormState
from services.submission_service import SubmissionService

router = APIRouter(prefix="/api", tags=["Reportes"], responses=ERROR_RESPONSES)


def clamp_limit(limit: Optional[int], settings: Settings) -> int:
    return min(limit or settings.REPORTES_DEFAULT_LIMIT, settings.REPORTES_MAX_LIMIT)


# ✅ [READ] latest reports, Fecha desc
@router.get("/reportes")
async def list_reportes(
    limit: Optional[int] = Query(None, ge=1),
    settings: Settings = Depends(get_settings),
    gateway: AirtableGateway = Depends(get_gateway),
):
    reportes = await gateway.list_reportes(clamp_limit(limit, settings))
    return {"ok": True, "records": [r.model_dump(by_alias=True) for r in reportes]}


# ✅ [CREATE] supervisor's daily report + form state for the next entry
@router.post("/reportes")
async def create_reporte(
    payload: ReportePayload,
    service: SubmissionService = Depends(get_submission_service),
):
    record_id, supervisor = await service.enviar(payload)

    siguiente = BitacoraFormState.desde_payload(payload, supervisor)
    siguiente.reset_after_submit()
    return {"ok": True, "recordId": record_id, "formulario": siguiente.model_dump(by_alias=True)}
