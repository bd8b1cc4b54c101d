"""
Static activity rosters and incident options shown in the daily form.

An activity belongs to exactly one category; anything not listed here is
dropped when a report is written.
"""

NINGUNO = "Ninguno"
OTRO = "Otro"

FABRICACION = (
    "Habilitado",
    "Corte",
    "Armado",
    "Ensamble",
    "Limpieza de piezas",
)

INSTALACION = (
    "Colocación de aluminio",
    "Colocación de vidrio",
    "Ajuste de postes",
    "Sellos interior",
    "Sellos exterior",
    "Accesorios",
    "Limpieza",
)

SUPERVISION = (
    "Revisión de calidad",
    "Validación de metrado",
    "Coordinación con contratista",
    "Revisión de avances",
)

TIEMPO_MUERTO_OPCIONES = (
    "Falta de material",
    "Contratista no llegó",
    "Obstrucción / interfaz",
    "Espera de instrucción",
    "Clima",
    NINGUNO,
    OTRO,
)

PENDIENTE_OPCIONES = (
    "Ajustar sellos",
    "Falta vidrio",
    "Revisar alineación",
    "Remate pendiente",
    "Limpieza pendiente",
    NINGUNO,
    OTRO,
)


def as_dict() -> dict:
    return {
        "fabricacion": list(FABRICACION),
        "instalacion": list(INSTALACION),
        "supervision": list(SUPERVISION),
        "tiempoMuerto": list(TIEMPO_MUERTO_OPCIONES),
        "pendiente": list(PENDIENTE_OPCIONES),
    }
