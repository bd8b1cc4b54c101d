"""
State of the supervisor's daily form between two submissions.

The API hands this back to the page: `GET /api/formulario` gives the
initial state for a supervisor, and a successful `POST /api/reportes`
returns the state for the next entry. The selected project survives a
submission (it is usually the same the next day), everything else starts over.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.reportes import ReportePayload
from schemas.supervisores import ProyectoItem, SupervisorDetalle
from services.submission_service import actividades_de, validate_submission

NUMERIC_ATTRS = (
    "m2_instalados",
    "piezas_colocadas",
    "sellos_ejecutados",
    "postes_ajustados",
    "m2_vidrio",
    "m2_aluminio",
    "ml_sellos_interior",
    "ml_sellos_exterior",
    "puertas_colocadas",
)


def _texto(valor) -> str:
    return "" if valor is None else str(valor)


class BitacoraFormState(BaseModel):
    supervisor: Optional[SupervisorDetalle] = None
    proyecto_seleccionado: str = ""

    fecha: str = ""
    actividades: List[str] = []
    m2_instalados: str = ""
    piezas_colocadas: str = ""
    sellos_ejecutados: str = ""
    postes_ajustados: str = ""
    m2_vidrio: str = ""
    m2_aluminio: str = ""
    ml_sellos_interior: str = ""
    ml_sellos_exterior: str = ""
    puertas_colocadas: str = ""

    tiempo_muerto: str = ""
    tiempo_muerto_otro: str = ""
    pendiente: str = ""
    pendiente_otro: str = ""

    confirmado: bool = False
    fotos: List[str] = []                        # uploaded URLs

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def desde_payload(cls, payload: ReportePayload, supervisor: Optional[SupervisorDetalle]) -> "BitacoraFormState":
        """The form as it was when `payload` was sent."""
        return cls(
            supervisor=supervisor,
            proyecto_seleccionado=(payload.proyecto_id or "") if supervisor and supervisor.proyectos else "",
            fecha=payload.fecha or "",
            actividades=actividades_de(payload),
            tiempo_muerto=payload.tiempo_muerto or "",
            tiempo_muerto_otro=payload.tiempo_muerto_otro or "",
            pendiente=payload.pendiente or "",
            pendiente_otro=payload.pendiente_otro or "",
            confirmado=payload.confirmado,
            fotos=list(payload.fotos),
            **{attr: _texto(getattr(payload, attr)) for attr in NUMERIC_ATTRS},
        )

    @property
    def proyectos(self) -> List[ProyectoItem]:
        return self.supervisor.proyectos if self.supervisor else []

    def load_supervisor(self, supervisor: SupervisorDetalle) -> None:
        """A single assigned project is preselected."""
        self.supervisor = supervisor
        if len(supervisor.proyectos) == 1:
            self.proyecto_seleccionado = supervisor.proyectos[0].id

    def to_payload(self) -> ReportePayload:
        return ReportePayload(
            fecha=self.fecha or None,
            actividades=list(self.actividades),
            tiempo_muerto=self.tiempo_muerto,
            tiempo_muerto_otro=self.tiempo_muerto_otro,
            pendiente=self.pendiente,
            pendiente_otro=self.pendiente_otro,
            confirmado=self.confirmado,
            fotos=list(self.fotos),
            supervisor_id=self.supervisor.supervisor_id if self.supervisor else None,
            proyecto_id=(self.proyecto_seleccionado or None) if self.proyectos else None,
            **{attr: getattr(self, attr) for attr in NUMERIC_ATTRS},
        )

    def validar(self) -> List[str]:
        """What is still missing before the form can be sent."""
        return validate_submission(self.to_payload(), self.supervisor)

    def reset_after_submit(self) -> None:
        """Clear the day's fields; supervisor and selected project stay."""
        kept = {"supervisor", "proyecto_seleccionado"}
        for name, field in type(self).model_fields.items():
            if name not in kept:
                setattr(self, name, field.get_default(call_default_factory=True))
