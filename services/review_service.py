import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from schemas.reportes import Reporte, ReporteAdmin
from schemas.supervisores import SupervisorItem
from services.airtable_gateway import AirtableGateway, parece_record_id, resolver_nombre_proyecto
from services.catalogos import NINGUNO

logger = logging.getLogger(__name__)

SIN_NOMBRE = "—"


# ===============================================================
# Filters (pure, composable, order independent)
# ===============================================================

def _es_incidencia(valor: Optional[str]) -> bool:
    return bool(valor) and valor != NINGUNO


def tiene_incidencia(reporte: Reporte) -> bool:
    return _es_incidencia(reporte.tiempo_muerto) or _es_incidencia(reporte.pendiente)


def filtrar_por_incidencia(reportes: Iterable[Reporte]) -> list:
    return [r for r in reportes if tiene_incidencia(r)]


def filtrar_por_supervisor(reportes: Iterable[Reporte], supervisor_id: str) -> list:
    return [r for r in reportes if supervisor_id in r.supervisores]


def filtrar_por_texto(reportes: Iterable[Reporte], texto: str) -> list:
    """Case-insensitive match on "fecha tiempo_muerto pendiente"."""
    term = texto.strip().lower()
    if not term:
        return list(reportes)
    return [
        r for r in reportes
        if term in f"{r.fecha or ''} {r.tiempo_muerto or ''} {r.pendiente or ''}".lower()
    ]


def aplicar_filtros(
    reportes: Iterable[Reporte],
    supervisor_id: Optional[str] = None,
    texto: Optional[str] = None,
    solo_incidencias: bool = False,
) -> list:
    resultado = list(reportes)
    if solo_incidencias:
        resultado = filtrar_por_incidencia(resultado)
    if supervisor_id:
        resultado = filtrar_por_supervisor(resultado, supervisor_id)
    if texto and texto.strip():
        resultado = filtrar_por_texto(resultado, texto)
    return resultado


# ===============================================================
# Denormalization
# ===============================================================

def supervisor_map(supervisores: Iterable[SupervisorItem]) -> Dict[str, str]:
    """id -> nombre, only supervisors that have a name."""
    return {s.id: s.nombre for s in supervisores if s.nombre}


def proyectos_sin_nombre(reportes: Iterable[Reporte]) -> List[str]:
    """Linked project IDs of reports whose lookup field carries no readable name."""
    ids: List[str] = []
    for reporte in reportes:
        if any(n and not parece_record_id(n) for n in reporte.proyecto_lookup):
            continue
        ids.extend(pid for pid in reporte.proyectos if pid not in ids)
    return ids


def denormalizar(
    reporte: Reporte,
    supervisores: Dict[str, str],
    proyectos: Optional[Dict[str, str]] = None,
) -> ReporteAdmin:
    supervisor_id = reporte.supervisores[0] if reporte.supervisores else None
    return ReporteAdmin(
        **reporte.model_dump(),
        supervisor_id=supervisor_id,
        supervisor_nombre=(supervisor_id and supervisores.get(supervisor_id)) or SIN_NOMBRE,
        proyecto_nombre=resolver_nombre_proyecto(reporte, proyectos),
    )


class ReviewService:
    """Admin view: recent reports with names resolved, plus filtering."""

    def __init__(self, gateway: AirtableGateway):
        self.gateway = gateway

    async def load(self, limit: int) -> tuple:
        """Reports and supervisors are fetched concurrently; returns (reportes, supervisores)."""
        reportes, supervisores = await asyncio.gather(
            self.gateway.list_reportes(limit),
            self.gateway.list_supervisores(),
        )
        nombrados = [s for s in supervisores if s.nombre]
        mapa = supervisor_map(nombrados)
        proyectos = await self.proyecto_map(reportes)
        return [denormalizar(r, mapa, proyectos) for r in reportes], nombrados

    async def proyecto_map(self, reportes: List[Reporte]) -> Dict[str, str]:
        """id -> name for linked projects the lookup field does not name (one batched lookup)."""
        ids = proyectos_sin_nombre(reportes)
        if not ids:
            return {}
        return {p.id: p.nombre for p in await self.gateway.get_proyectos(ids) if p.nombre != p.id}

    async def buscar(
        self,
        limit: int,
        supervisor_id: Optional[str] = None,
        texto: Optional[str] = None,
        solo_incidencias: bool = False,
    ) -> tuple:
        reportes, supervisores = await self.load(limit)
        filtrados = aplicar_filtros(reportes, supervisor_id, texto, solo_incidencias)
        logger.info(f"Revisión: {len(filtrados)}/{len(reportes)} reportes tras filtros")
        return filtrados, supervisores

    async def get(self, record_id: str) -> ReporteAdmin:
        """One report denormalized for export."""
        reporte = await self.gateway.get_reporte(record_id)
        supervisores: Dict[str, str] = {}
        if reporte.supervisores:
            supervisores = supervisor_map(await self.gateway.list_supervisores())
        return denormalizar(reporte, supervisores, await self.proyecto_map([reporte]))
