from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List


class ProyectoItem(BaseModel):
    id: str
    nombre: str


class SupervisorItem(BaseModel):
    id: str                     # Airtable record ID, doubles as the supervisor's token
    nombre: str = ""
    activo: bool = False


class SupervisorDetalle(BaseModel):
    supervisor_id: str
    supervisor_name: str = ""
    proyectos: List[ProyectoItem] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
