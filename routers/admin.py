import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from config.settings import Settings, get_settings
from dependencies.providers import get_pdf_service, get_review_service
from routers.reportes import clamp_limit
from schemas.common import ERROR_RESPONSES, error_body
from services.errors import BitacoraError
from services.pdf_service import PDFService, pdf_filename
from services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Administración"], responses=ERROR_RESPONSES)


# ✅ [READ] reports with supervisor/project names + filters
@router.get("/reportes")
async def list_reportes_admin(
    limit: Optional[int] = Query(None, ge=1),
    supervisor: Optional[str] = Query(None, description="supervisor record ID"),
    q: Optional[str] = Query(None, description="text in fecha / tiempo muerto / pendiente"),
    solo_incidencias: bool = Query(False, alias="soloIncidencias"),
    settings: Settings = Depends(get_settings),
    service: ReviewService = Depends(get_review_service),
):
    reportes, supervisores = await service.buscar(
        clamp_limit(limit, settings),
        supervisor_id=supervisor,
        texto=q,
        solo_incidencias=solo_incidencias,
    )
    return {
        "ok": True,
        "records": [r.model_dump(by_alias=True) for r in reportes],
        "supervisores": [s.model_dump() for s in supervisores],
        "total": len(reportes),
    }


# ✅ [EXPORT PDF] one report, letterhead + one page per photo
@router.get("/reportes/{record_id}/pdf")
async def export_reporte_pdf(
    record_id: str,
    service: ReviewService = Depends(get_review_service),
    pdf_service: PDFService = Depends(get_pdf_service),
):
    reporte = await service.get(record_id)
    try:
        pdf_content = await pdf_service.generate_reporte_pdf(reporte)
    except BitacoraError:
        raise
    except Exception:
        logger.exception(f"PDF generation failed for {record_id}")
        return JSONResponse(status_code=500, content=error_body("No se pudo generar el PDF."))

    return Response(
        content=pdf_content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(reporte)}"'},
    )
