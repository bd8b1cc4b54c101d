import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from config.settings import Settings
from schemas.reportes import FotosUploadResult, ReportePayload
from schemas.supervisores import SupervisorDetalle
from services.airtable_gateway import AirtableGateway, build_reporte_fields
from services.catalogos import FABRICACION, INSTALACION, SUPERVISION
from services.errors import MediaUploadError, SubmissionValidationError, SupervisorNotFound
from services.media_client import CloudinaryUploader

logger = logging.getLogger(__name__)

# (filename, content, content_type)
FotoFile = Tuple[str, bytes, Optional[str]]


def partition_actividades(actividades: Iterable[str]) -> Tuple[List[str], List[str], List[str]]:
    """
    Split a flat activity selection into (fabricación, instalación, supervisión).
    Values outside the rosters are dropped; repeats keep their first position.
    """
    fabricacion: List[str] = []
    instalacion: List[str] = []
    supervision: List[str] = []
    vistos = set()
    for actividad in actividades:
        if actividad in vistos:
            continue
        vistos.add(actividad)
        if actividad in FABRICACION:
            fabricacion.append(actividad)
        elif actividad in INSTALACION:
            instalacion.append(actividad)
        elif actividad in SUPERVISION:
            supervision.append(actividad)
    return fabricacion, instalacion, supervision


def actividades_de(payload: ReportePayload) -> List[str]:
    """Every selection in the payload, flat list first."""
    return [*payload.actividades, *payload.fabricacion, *payload.instalacion, *payload.supervision]


def validate_submission(payload: ReportePayload, supervisor: Optional[SupervisorDetalle]) -> List[str]:
    """All missing required fields, as messages for the supervisor. Empty list means valid."""
    errors: List[str] = []

    if not (payload.fecha or "").strip():
        errors.append("La fecha del día es obligatoria.")

    if not any(partition_actividades(actividades_de(payload))):
        errors.append("Selecciona al menos una actividad del día.")

    if supervisor is not None and supervisor.proyectos and not payload.proyecto_id:
        errors.append("Selecciona el proyecto del día.")

    if not payload.confirmado:
        errors.append("Debes confirmar que la información es real y verificable.")

    if supervisor is None or not supervisor.supervisor_id:
        errors.append("No se pudo identificar al supervisor.")

    return errors


class SubmissionService:
    """Validates a supervisor's daily entry and writes it to Airtable."""

    def __init__(self, settings: Settings, gateway: AirtableGateway, uploader: CloudinaryUploader):
        self.settings = settings
        self.gateway = gateway
        self.uploader = uploader

    async def _resolve_supervisor(self, supervisor_id: Optional[str]) -> Optional[SupervisorDetalle]:
        if not supervisor_id:
            return None
        try:
            return await self.gateway.get_supervisor(supervisor_id)
        except SupervisorNotFound:
            return None

    async def submit(self, payload: ReportePayload) -> str:
        """Create one report row; returns its record ID."""
        record_id, _ = await self.enviar(payload)
        return record_id

    async def enviar(self, payload: ReportePayload) -> Tuple[str, SupervisorDetalle]:
        """Same as `submit`, also returning the supervisor the report was filed under."""
        supervisor = await self._resolve_supervisor(payload.supervisor_id)

        errors = validate_submission(payload, supervisor)
        if errors:
            logger.info(f"Reporte rechazado ({len(errors)} errores) supervisor={payload.supervisor_id}")
            raise SubmissionValidationError(errors)

        # without assigned projects the report carries no project link
        if not supervisor.proyectos:
            payload = payload.model_copy(update={"proyecto_id": None})

        categorias = partition_actividades(actividades_de(payload))
        fields = build_reporte_fields(payload, categorias)
        record_id = await self.gateway.create_reporte(fields)
        logger.info(f"Reporte creado: {record_id} fecha={payload.fecha} supervisor={supervisor.supervisor_id}")
        return record_id, supervisor

    async def upload_fotos(self, files: Sequence[FotoFile]) -> FotosUploadResult:
        """
        Upload each photo on its own, in order.

        Only the first MAX_FOTOS files are taken. A failed upload drops that
        photo and is reported in `failed`; the others still go through.
        """
        result = FotosUploadResult()
        max_fotos = self.settings.MAX_FOTOS
        if len(files) > max_fotos:
            result.warnings.append(f"Solo puedes subir hasta {max_fotos} fotos.")
            files = files[:max_fotos]

        for filename, content, content_type in files:
            try:
                url = await self.uploader.upload(filename, content, content_type)
            except MediaUploadError as e:
                logger.warning(f"Foto omitida {filename}: {e.message}")
                result.failed.append(filename)
                continue
            result.urls.append(url)

        return result
