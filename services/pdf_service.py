import base64
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
import weasyprint
from jinja2 import Environment, FileSystemLoader, select_autoescape
from PIL import Image, UnidentifiedImageError

from config.settings import Settings
from schemas.reportes import ReporteAdmin

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

PAGE_SIZES_MM = {
    "A4": (210.0, 297.0),
    "Letter": (215.9, 279.4),
}

# keeps the photo box strictly inside the content area so a page never spills over
SAFETY_MM = 1.0

SIN_ACTIVIDADES = "Sin actividades registradas"
SIN_DATO = "—"

METRICAS = (
    ("m2_instalados", "m² instalados"),
    ("piezas_colocadas", "Piezas colocadas"),
    ("sellos_ejecutados", "Sellos ejecutados"),
    ("postes_ajustados", "Postes ajustados"),
    ("m2_vidrio", "m² vidrio"),
    ("m2_aluminio", "m² aluminio"),
    ("ml_sellos_interior", "ML sellos interior"),
    ("ml_sellos_exterior", "ML sellos exterior"),
    ("puertas_colocadas", "Puertas colocadas"),
)

# free text is clipped so the summary always fits on page 1
MAX_TEXTO_INCIDENCIA = 240
MAX_NOMBRE = 60
MAX_ACTIVIDAD = 40
MAX_ACTIVIDADES_POR_CATEGORIA = 7


def fit_within(width: float, height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """Largest (w, h) with the same aspect ratio that fits in max_width x max_height."""
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    scale = min(max_width / width, max_height / height)
    return width * scale, height * scale


def place_centered(width: float, height: float, area_width: float, area_height: float) -> Dict[str, float]:
    """Scaled size plus the offsets that center it in the area (same unit as the area)."""
    w, h = fit_within(width, height, area_width, area_height)
    return {
        "width": w,
        "height": h,
        "left": (area_width - w) / 2,
        "top": (area_height - h) / 2,
    }


def _formato_numero(valor: Optional[float]) -> str:
    if valor is None:
        return SIN_DATO
    if float(valor).is_integer():
        return str(int(valor))
    return f"{valor:g}"


def recortar(texto: Optional[str], limite: int) -> Optional[str]:
    """Clip `texto` to `limite` characters, marking the cut with an ellipsis."""
    if not texto or len(texto) <= limite:
        return texto
    return texto[: limite - 1].rstrip() + "…"


def _lista_actividades(actividades: List[str]) -> List[str]:
    visibles = [recortar(a, MAX_ACTIVIDAD) for a in actividades[:MAX_ACTIVIDADES_POR_CATEGORIA]]
    resto = len(actividades) - len(visibles)
    if resto > 0:
        visibles.append(f"(+{resto} más)")
    return visibles


def _data_uri(content: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


def _inspect_image(content: bytes) -> Tuple[int, int, str]:
    """(width, height, mime) of an image; raises when Pillow cannot read it."""
    with Image.open(io.BytesIO(content)) as img:
        width, height = img.size
        mime = Image.MIME.get(img.format or "", "image/jpeg")
    return width, height, mime


class PDFService:
    """Daily report PDF: letterhead + data on page 1, one page per photo."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    # ---------------------------------------------------------------
    # page geometry
    # ---------------------------------------------------------------

    @property
    def page_mm(self) -> Tuple[float, float]:
        return PAGE_SIZES_MM[self.settings.PDF_PAGE_SIZE]

    @property
    def printable_mm(self) -> Tuple[float, float]:
        page_w, page_h = self.page_mm
        margin = self.settings.PDF_MARGIN_MM
        return page_w - 2 * margin - SAFETY_MM, page_h - 2 * margin - SAFETY_MM

    # ---------------------------------------------------------------
    # assets
    # ---------------------------------------------------------------

    def _load_logo(self) -> Optional[str]:
        """Letterhead logo as a data URI; None degrades to a text-only header."""
        path = self.settings.LETTERHEAD_LOGO_PATH
        if not path:
            return None
        try:
            content = Path(path).read_bytes()
            _, _, mime = _inspect_image(content)
        except (OSError, UnidentifiedImageError) as e:
            logger.warning(f"Logo no disponible ({path}): {e}")
            return None
        return _data_uri(content, mime)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> Optional[Dict[str, Any]]:
        try:
            response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
            width, height, mime = _inspect_image(response.content)
        except (httpx.HTTPError, UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Foto omitida en PDF ({url}): {e}")
            return None

        area_w, area_h = self.printable_mm
        return {
            "src": _data_uri(response.content, mime),
            **place_centered(width, height, area_w, area_h),
        }

    async def _fetch_fotos(self, urls: List[str]) -> List[Dict[str, Any]]:
        """Photos in order, one request after the other; failures are skipped."""
        if not urls:
            return []
        fotos: List[Dict[str, Any]] = []
        if self._client is not None:
            for url in urls:
                foto = await self._fetch(self._client, url)
                if foto:
                    fotos.append(foto)
            return fotos
        async with httpx.AsyncClient() as client:
            for url in urls:
                foto = await self._fetch(client, url)
                if foto:
                    fotos.append(foto)
        return fotos

    # ---------------------------------------------------------------
    # rendering
    # ---------------------------------------------------------------

    async def build_context(self, reporte: ReporteAdmin) -> Dict[str, Any]:
        page_w, page_h = self.page_mm
        area_w, area_h = self.printable_mm
        return {
            "titulo": self.settings.LETTERHEAD_TITLE,
            "logo": self._load_logo(),
            "page": {
                "size": self.settings.PDF_PAGE_SIZE,
                "margin": self.settings.PDF_MARGIN_MM,
                "area_width": area_w,
                "area_height": area_h,
            },
            "reporte": reporte,
            "fecha": recortar(reporte.fecha, MAX_NOMBRE) or SIN_DATO,
            "supervisor": recortar(reporte.supervisor_nombre, MAX_NOMBRE) or SIN_DATO,
            "proyecto": recortar(reporte.proyecto_nombre, MAX_NOMBRE) or SIN_DATO,
            "categorias": [
                ("Fabricación", _lista_actividades(reporte.fabricacion)),
                ("Instalación", _lista_actividades(reporte.instalacion)),
                ("Supervisión", _lista_actividades(reporte.supervision)),
            ],
            "sin_actividades": SIN_ACTIVIDADES,
            "metricas": [(label, _formato_numero(getattr(reporte, attr))) for attr, label in METRICAS],
            "tiempo_muerto": recortar(reporte.tiempo_muerto, MAX_NOMBRE) or SIN_DATO,
            "tiempo_muerto_otro": recortar(reporte.tiempo_muerto_otro, MAX_TEXTO_INCIDENCIA),
            "pendiente": recortar(reporte.pendiente, MAX_NOMBRE) or SIN_DATO,
            "pendiente_otro": recortar(reporte.pendiente_otro, MAX_TEXTO_INCIDENCIA),
            "fotos": await self._fetch_fotos(reporte.fotos),
        }

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(**data)

    async def render_html(self, reporte: ReporteAdmin) -> str:
        return self._render_template("bitacora_reporte.html", await self.build_context(reporte))

    async def render(self, reporte: ReporteAdmin) -> "weasyprint.Document":
        """Laid-out document; `.pages` gives the page count."""
        html = await self.render_html(reporte)
        return weasyprint.HTML(string=html).render()

    async def generate_reporte_pdf(self, reporte: ReporteAdmin) -> bytes:
        document = await self.render(reporte)
        return document.write_pdf()


def pdf_filename(reporte: ReporteAdmin) -> str:
    return f"bitacora_{reporte.fecha or 'sin-fecha'}_{reporte.id}.pdf"
