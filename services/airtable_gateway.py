import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from config.settings import Settings
from schemas.reportes import Reporte, ReportePayload
from schemas.supervisores import ProyectoItem, SupervisorDetalle, SupervisorItem
from services.errors import ReporteNotFound, SupervisorNotFound, UpstreamStorageError

logger = logging.getLogger(__name__)

# ===============================================================
# Exact field names in the Airtable base
# ===============================================================

# "Reportes Diarios"
FIELD_FECHA = "Fecha"
FIELD_SUPERVISOR_LINK = "Supervisores"     # link -> Supervisores
FIELD_PROYECTO_LINK = "Proyecto"           # link -> Proyectos
FIELD_PROYECTO_LOOKUP = "Nombre del proyecto (from Proyecto)"
FIELD_CONFIRMADO = "Confirmado por supervisor"

FIELD_FABRICACION = "Fabricación – actividades"
FIELD_INSTALACION = "Instalación – actividades"
FIELD_SUPERVISION = "Supervisión – actividades"

FIELD_TIEMPO_MUERTO = "Tiempo muerto"
FIELD_TIEMPO_MUERTO_OTRO = "Tiempo muerto – otro"
FIELD_PENDIENTE = "Pendiente"
FIELD_PENDIENTE_OTRO = "Pendiente – otro"

FIELD_FOTOS = "Fotos"

# schema attribute -> Airtable numeric field
NUMERIC_FIELDS = {
    "m2_instalados": "m² instalados",
    "piezas_colocadas": "Piezas colocadas",
    "sellos_ejecutados": "Sellos ejecutados",
    "postes_ajustados": "Postes ajustados",
    "m2_vidrio": "m² vidrio",
    "m2_aluminio": "m² aluminio",
    "ml_sellos_interior": "ML sellos interior",
    "ml_sellos_exterior": "ML sellos exterior",
    "puertas_colocadas": "Puertas colocadas",
}

# schema attribute -> Airtable text field
TEXT_FIELDS = {
    "tiempo_muerto": FIELD_TIEMPO_MUERTO,
    "tiempo_muerto_otro": FIELD_TIEMPO_MUERTO_OTRO,
    "pendiente": FIELD_PENDIENTE,
    "pendiente_otro": FIELD_PENDIENTE_OTRO,
}

# "Supervisores"
FIELD_SUP_NOMBRE = "Nombre"
FIELD_SUP_ACTIVO = "Activo"
FIELD_SUP_PROYECTOS = "Proyectos asignados"

# "Proyectos"
FIELD_PROY_NOMBRE = "Nombre del proyecto"

RECORD_ID_PREFIX = "rec"

# Airtable refuses pageSize > 100; larger windows are read page by page
AIRTABLE_MAX_PAGE_SIZE = 100


# ===============================================================
# Value helpers
# ===============================================================

def parse_numero(value: Any) -> Optional[float]:
    """
    Coerce the text typed in a numeric input.
    Empty, non-numeric or non-finite values count as absent (None).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def parece_record_id(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith(RECORD_ID_PREFIX)


def resolver_nombre_proyecto(
    reporte: Reporte,
    proyectos_map: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Best-effort project display name.

    1) the lookup field, when it carries a real name
    2) a known id -> name map
    3) any candidate that does not look like a record ID

    When every candidate is ID-shaped the first one is returned, which may
    be the wrong value; only the lookup field gives a guaranteed answer.
    """
    for nombre in reporte.proyecto_lookup:
        if nombre and not parece_record_id(nombre):
            return nombre

    if proyectos_map:
        for pid in reporte.proyectos:
            if pid in proyectos_map:
                return proyectos_map[pid]

    candidatos = [c for c in [*reporte.proyecto_lookup, *reporte.proyectos] if c]
    for candidato in candidatos:
        if not parece_record_id(candidato):
            return candidato
    return candidatos[0] if candidatos else None


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _formula_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def map_reporte(record: Dict[str, Any]) -> Reporte:
    """Airtable row -> Reporte; missing fields become None / []."""
    fields = record.get("fields") or {}
    numeros = {attr: parse_numero(fields.get(name)) for attr, name in NUMERIC_FIELDS.items()}
    textos = {attr: fields.get(name) or None for attr, name in TEXT_FIELDS.items()}
    fotos = [
        adjunto["url"]
        for adjunto in fields.get(FIELD_FOTOS) or []
        if isinstance(adjunto, dict) and adjunto.get("url")
    ]
    return Reporte(
        id=record["id"],
        fecha=fields.get(FIELD_FECHA) or None,
        supervisores=_as_list(fields.get(FIELD_SUPERVISOR_LINK)),
        proyectos=_as_list(fields.get(FIELD_PROYECTO_LINK)),
        proyecto_lookup=_as_list(fields.get(FIELD_PROYECTO_LOOKUP)),
        confirmado=bool(fields.get(FIELD_CONFIRMADO)),
        fabricacion=_as_list(fields.get(FIELD_FABRICACION)),
        instalacion=_as_list(fields.get(FIELD_INSTALACION)),
        supervision=_as_list(fields.get(FIELD_SUPERVISION)),
        fotos=fotos,
        **numeros,
        **textos,
    )


def map_supervisor(record: Dict[str, Any]) -> SupervisorItem:
    fields = record.get("fields") or {}
    return SupervisorItem(
        id=record["id"],
        nombre=fields.get(FIELD_SUP_NOMBRE) or "",
        activo=bool(fields.get(FIELD_SUP_ACTIVO)),
    )


def build_reporte_fields(
    payload: ReportePayload,
    categorias: Tuple[Sequence[str], Sequence[str], Sequence[str]],
) -> Dict[str, Any]:
    """
    Field map for a new "Reportes Diarios" row.
    Empty optional values are left out instead of being written as null.
    """
    fabricacion, instalacion, supervision = categorias
    fields: Dict[str, Any] = {
        FIELD_FECHA: payload.fecha,
        FIELD_SUPERVISOR_LINK: [payload.supervisor_id],
        FIELD_CONFIRMADO: True,
    }

    if payload.proyecto_id:
        fields[FIELD_PROYECTO_LINK] = [payload.proyecto_id]

    if fabricacion:
        fields[FIELD_FABRICACION] = list(fabricacion)
    if instalacion:
        fields[FIELD_INSTALACION] = list(instalacion)
    if supervision:
        fields[FIELD_SUPERVISION] = list(supervision)

    for attr, name in NUMERIC_FIELDS.items():
        numero = parse_numero(getattr(payload, attr))
        if numero is not None:
            fields[name] = numero

    for attr, name in TEXT_FIELDS.items():
        texto = (getattr(payload, attr) or "").strip()
        if texto:
            fields[name] = texto

    fotos = [url for url in payload.fotos if url]
    if fotos:
        fields[FIELD_FOTOS] = [{"url": url} for url in fotos]

    return fields


# ===============================================================
# Gateway
# ===============================================================

class AirtableGateway:
    """Reads and writes bitácora rows through the Airtable REST API."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.base_url = settings.AIRTABLE_BASE_URL
        self.headers = {"Authorization": f"Bearer {settings.AIRTABLE_API_KEY}"}
        # an injected client is owned by the caller (tests, app lifespan)
        self._client = client

    def _table_url(self, table: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/{quote(table, safe='')}"
        if record_id:
            url = f"{url}/{quote(record_id, safe='')}"
        return url

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, headers=self.headers, **kwargs)
        client_kwargs = {}
        if self.settings.AIRTABLE_TIMEOUT is not None:
            client_kwargs["timeout"] = self.settings.AIRTABLE_TIMEOUT
        async with httpx.AsyncClient(**client_kwargs) as client:
            return await client.request(method, url, headers=self.headers, **kwargs)

    async def _request(self, method: str, url: str, context: str, **kwargs) -> httpx.Response:
        """Common request handling: transport failures become UpstreamStorageError."""
        try:
            return await self._send(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Airtable request failed ({context}): {e}")
            raise UpstreamStorageError(status=None, body=str(e)) from e

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _raise_upstream(self, response: httpx.Response, context: str, message: Optional[str] = None):
        body = self._body(response)
        logger.error(f"Airtable error ({context}) HTTP {response.status_code}: {body}")
        raise UpstreamStorageError(message, status=response.status_code, body=body)

    # -----------------------------------------------------------
    # Reportes
    # -----------------------------------------------------------

    async def list_reportes(self, limit: int) -> List[Reporte]:
        """Most recent reports first (Fecha desc), at most `limit` rows."""
        params = {
            "pageSize": str(min(limit, AIRTABLE_MAX_PAGE_SIZE)),
            "maxRecords": str(limit),
            "sort[0][field]": FIELD_FECHA,
            "sort[0][direction]": "desc",
        }
        url = self._table_url(self.settings.AIRTABLE_TABLE_REPORTES)

        records: List[Dict[str, Any]] = []
        while True:
            response = await self._request("GET", url, "GET reportes", params=params)
            if not response.is_success:
                self._raise_upstream(response, "GET reportes", "Error al leer reportes desde Airtable.")
            data = response.json()
            records.extend(data.get("records") or [])
            offset = data.get("offset")
            if not offset or len(records) >= limit:
                break
            params = {**params, "offset": offset}

        return [map_reporte(r) for r in records[:limit]]

    async def get_reporte(self, record_id: str) -> Reporte:
        url = self._table_url(self.settings.AIRTABLE_TABLE_REPORTES, record_id)
        response = await self._request("GET", url, "GET reporte")
        if response.status_code == 404:
            raise ReporteNotFound()
        if not response.is_success:
            self._raise_upstream(response, "GET reporte", "Error al leer el reporte desde Airtable.")
        return map_reporte(response.json())

    async def create_reporte(self, fields: Dict[str, Any]) -> str:
        """Single POST; returns the new record ID."""
        url = self._table_url(self.settings.AIRTABLE_TABLE_REPORTES)
        response = await self._request("POST", url, "POST reporte", json={"fields": fields})
        if not response.is_success:
            self._raise_upstream(response, "POST reporte", "Error al guardar en Airtable.")
        return response.json()["id"]

    # -----------------------------------------------------------
    # Supervisores / Proyectos
    # -----------------------------------------------------------

    async def list_supervisores(self) -> List[SupervisorItem]:
        params = {"pageSize": str(self.settings.SUPERVISORES_PAGE_SIZE)}
        url = self._table_url(self.settings.AIRTABLE_TABLE_SUPERVISORES)
        response = await self._request("GET", url, "GET supervisores", params=params)
        if not response.is_success:
            self._raise_upstream(response, "GET supervisores", "Error al leer supervisores desde Airtable.")
        data = response.json()
        return [map_supervisor(r) for r in data.get("records") or []]

    async def get_supervisor(self, record_id: str) -> SupervisorDetalle:
        """Supervisor by record ID plus the names of their assigned projects."""
        url = self._table_url(self.settings.AIRTABLE_TABLE_SUPERVISORES, record_id)
        response = await self._request("GET", url, "GET supervisor")
        if response.status_code >= 500:
            self._raise_upstream(response, "GET supervisor")
        if not response.is_success:
            logger.warning(f"Airtable supervisor {record_id} not found: {self._body(response)}")
            raise SupervisorNotFound()

        data = response.json()
        fields = data.get("fields") or {}
        proyectos = await self.get_proyectos(_as_list(fields.get(FIELD_SUP_PROYECTOS)))
        return SupervisorDetalle(
            supervisor_id=data["id"],
            supervisor_name=fields.get(FIELD_SUP_NOMBRE) or "",
            proyectos=proyectos,
        )

    async def get_proyectos(self, ids: Iterable[str]) -> List[ProyectoItem]:
        """
        Fetch just the given projects, one round trip per 100 ids:
        filterByFormula=OR(RECORD_ID()='a',RECORD_ID()='b',...)

        A failure is logged and yields [], so the supervisor lookup that
        asked for the names still succeeds.
        """
        ids = list(dict.fromkeys(pid for pid in ids if pid))
        proyectos: List[ProyectoItem] = []
        for start in range(0, len(ids), AIRTABLE_MAX_PAGE_SIZE):
            proyectos.extend(await self._get_proyectos_page(ids[start: start + AIRTABLE_MAX_PAGE_SIZE]))
        return proyectos

    async def _get_proyectos_page(self, ids: List[str]) -> List[ProyectoItem]:
        formula = "OR(" + ",".join(f"RECORD_ID()={_formula_literal(pid)}" for pid in ids) + ")"
        params = {"filterByFormula": formula, "pageSize": str(len(ids))}
        url = self._table_url(self.settings.AIRTABLE_TABLE_PROYECTOS)
        try:
            response = await self._request("GET", url, "GET proyectos", params=params)
        except UpstreamStorageError:
            return []
        if not response.is_success:
            logger.error(f"Airtable proyectos error HTTP {response.status_code}: {self._body(response)}")
            return []

        return [
            ProyectoItem(id=r["id"], nombre=(r.get("fields") or {}).get(FIELD_PROY_NOMBRE) or r["id"])
            for r in response.json().get("records") or []
        ]
