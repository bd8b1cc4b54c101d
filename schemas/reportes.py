from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union

# numbers arrive as the text typed in the form ("12.5", "") or as JSON numbers
NumericInput = Union[float, int, str, None]


# ==========================================================
# [input schema]
# ==========================================================
class ReportePayload(BaseModel):
    fecha: Optional[str] = None                  # calendar date, "YYYY-MM-DD"
    actividades: List[str] = []                  # flat selection, split by roster on write
    fabricacion: List[str] = []                  # already split selections are accepted too
    instalacion: List[str] = []
    supervision: List[str] = []

    m2_instalados: NumericInput = None           # m² installed
    piezas_colocadas: NumericInput = None        # pieces placed
    sellos_ejecutados: NumericInput = None       # seals executed
    postes_ajustados: NumericInput = None        # posts adjusted
    m2_vidrio: NumericInput = None               # glass area
    m2_aluminio: NumericInput = None             # aluminum area
    ml_sellos_interior: NumericInput = None      # interior seal length (linear m)
    ml_sellos_exterior: NumericInput = None      # exterior seal length (linear m)
    puertas_colocadas: NumericInput = None       # doors placed

    tiempo_muerto: Optional[str] = None          # downtime category
    tiempo_muerto_otro: Optional[str] = None
    pendiente: Optional[str] = None              # pending-item category
    pendiente_otro: Optional[str] = None

    confirmado: bool = False
    fotos: List[str] = []                        # hosted image URLs, in order

    supervisor_id: Optional[str] = None
    proyecto_id: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ==========================================================
# [output schemas]
# ==========================================================
class Reporte(BaseModel):
    id: str
    fecha: Optional[str] = None
    supervisores: List[str] = []                 # linked record IDs
    proyectos: List[str] = []
    proyecto_lookup: List[str] = []              # "Nombre del proyecto (from Proyecto)"
    confirmado: bool = False

    fabricacion: List[str] = []
    instalacion: List[str] = []
    supervision: List[str] = []

    m2_instalados: Optional[float] = None
    piezas_colocadas: Optional[float] = None
    sellos_ejecutados: Optional[float] = None
    postes_ajustados: Optional[float] = None
    m2_vidrio: Optional[float] = None
    m2_aluminio: Optional[float] = None
    ml_sellos_interior: Optional[float] = None
    ml_sellos_exterior: Optional[float] = None
    puertas_colocadas: Optional[float] = None

    tiempo_muerto: Optional[str] = None
    tiempo_muerto_otro: Optional[str] = None
    pendiente: Optional[str] = None
    pendiente_otro: Optional[str] = None

    fotos: List[str] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReporteAdmin(Reporte):
    """Report with the supervisor/project names resolved for display."""
    supervisor_id: Optional[str] = None
    supervisor_nombre: str = "—"
    proyecto_nombre: Optional[str] = None


class FotosUploadResult(BaseModel):
    urls: List[str] = []
    failed: List[str] = Field(default_factory=list, description="file names that could not be uploaded")
    warnings: List[str] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
