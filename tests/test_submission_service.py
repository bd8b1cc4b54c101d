"""
Tests for the report submission service.

Covers:
  - every selected activity lands in exactly one category; unknown ones are dropped
  - validation collects every missing field instead of stopping at the first
  - project is required only for supervisors with assigned projects
  - submit writes the partitioned activities and keeps numeric nulls
  - photo uploads: cap at 5, one failure does not block the rest
"""

import asyncio
import json

import pytest

from schemas.reportes import ReportePayload
from schemas.supervisores import ProyectoItem, SupervisorDetalle
from services.catalogos import FABRICACION, INSTALACION, SUPERVISION
from services.errors import SubmissionValidationError
from services.submission_service import (
    SubmissionService,
    partition_actividades,
    validate_submission,
)
from tests.fakes import TABLE_REPORTES


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(settings, gateway, uploader):
    return SubmissionService(settings, gateway, uploader)


def _supervisor(proyectos=()):
    return SupervisorDetalle(
        supervisor_id="recSUP00000000001",
        supervisor_name="Ana Torres",
        proyectos=[ProyectoItem(id=pid, nombre=pid) for pid in proyectos],
    )


# ── partition ──────────────────────────────────────────────────────────────


def test_partition_splits_by_roster():
    fab, ins, sup = partition_actividades(
        ["Corte", "Colocación de vidrio", "Revisión de calidad", "Armado", "Limpieza"]
    )

    assert fab == ["Corte", "Armado"]
    assert ins == ["Colocación de vidrio", "Limpieza"]
    assert sup == ["Revisión de calidad"]


def test_partition_drops_unknown_and_duplicates():
    fab, ins, sup = partition_actividades(["Corte", "Soldadura", "Corte", "", "limpieza"])

    assert (fab, ins, sup) == (["Corte"], [], [])


def test_partition_every_known_item_in_exactly_one_category():
    todas = [*FABRICACION, *INSTALACION, *SUPERVISION, "Inventada"]

    categorias = partition_actividades(todas)
    salida = [a for categoria in categorias for a in categoria]

    assert sorted(salida) == sorted([*FABRICACION, *INSTALACION, *SUPERVISION])
    assert len(salida) == len(set(salida))


# ── validation ─────────────────────────────────────────────────────────────


def test_validation_collects_all_errors():
    errors = validate_submission(ReportePayload(), None)

    assert errors == [
        "La fecha del día es obligatoria.",
        "Selecciona al menos una actividad del día.",
        "Debes confirmar que la información es real y verificable.",
        "No se pudo identificar al supervisor.",
    ]


def test_validation_requires_project_when_supervisor_has_projects():
    payload = ReportePayload(fecha="2024-05-01", actividades=["Corte"], confirmado=True)

    assert validate_submission(payload, _supervisor(["recP1"])) == ["Selecciona el proyecto del día."]
    assert validate_submission(payload, _supervisor()) == []


def test_validation_unknown_activities_do_not_count():
    payload = ReportePayload(fecha="2024-05-01", actividades=["Soldadura"], confirmado=True)

    assert validate_submission(payload, _supervisor()) == ["Selecciona al menos una actividad del día."]


# ── submit ─────────────────────────────────────────────────────────────────


def test_submit_example_scenario(service, fake_airtable, supervisor_sin_proyectos, gateway):
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-04-29"})
    payload = ReportePayload.model_validate({
        "fecha": "2024-05-01",
        "fabricacion": ["Corte"],
        "instalacion": [],
        "supervision": ["Revisión de calidad"],
        "confirmado": True,
        "supervisorId": supervisor_sin_proyectos,
    })

    record_id = run(service.submit(payload))

    reportes = run(gateway.list_reportes(50))
    assert reportes[0].id == record_id
    assert reportes[0].fecha == "2024-05-01"
    assert reportes[0].fabricacion == ["Corte"]
    assert reportes[0].instalacion == []
    assert reportes[0].supervision == ["Revisión de calidad"]
    assert reportes[0].m2_instalados is None
    assert reportes[0].confirmado is True


def test_submit_round_trip_numbers(service, supervisor_sin_proyectos, gateway):
    payload = ReportePayload(
        fecha="2024-05-02",
        actividades=["Sellos interior"],
        m2_instalados="10.5",
        piezas_colocadas="0",
        ml_sellos_interior="22",
        confirmado=True,
        supervisor_id=supervisor_sin_proyectos,
    )

    run(service.submit(payload))

    reporte = run(gateway.list_reportes(1))[0]
    assert reporte.m2_instalados == 10.5
    assert reporte.piezas_colocadas == 0
    assert reporte.ml_sellos_interior == 22
    assert reporte.sellos_ejecutados is None
    assert reporte.puertas_colocadas is None


def test_submit_rejects_missing_project(service, fake_airtable, supervisor_con_proyectos):
    sup_id, _ = supervisor_con_proyectos
    payload = ReportePayload(fecha="2024-05-01", actividades=["Corte"], confirmado=True, supervisor_id=sup_id)

    with pytest.raises(SubmissionValidationError) as exc_info:
        run(service.submit(payload))

    assert exc_info.value.errors == ["Selecciona el proyecto del día."]
    assert fake_airtable.requests_to(TABLE_REPORTES, "POST") == []


def test_submit_links_selected_project(service, fake_airtable, supervisor_con_proyectos):
    sup_id, (p1, _) = supervisor_con_proyectos
    payload = ReportePayload(
        fecha="2024-05-01", actividades=["Corte"], confirmado=True, supervisor_id=sup_id, proyecto_id=p1
    )

    run(service.submit(payload))

    body = json.loads(fake_airtable.requests_to(TABLE_REPORTES, "POST")[0].content)
    assert body["fields"]["Proyecto"] == [p1]
    assert body["fields"]["Supervisores"] == [sup_id]


def test_submit_drops_project_for_supervisor_without_projects(service, fake_airtable, supervisor_sin_proyectos):
    payload = ReportePayload(
        fecha="2024-05-01",
        actividades=["Corte"],
        confirmado=True,
        supervisor_id=supervisor_sin_proyectos,
        proyecto_id="recSTALE",
    )

    run(service.submit(payload))

    body = json.loads(fake_airtable.requests_to(TABLE_REPORTES, "POST")[0].content)
    assert "Proyecto" not in body["fields"]


def test_submit_unknown_supervisor_is_a_validation_error(service):
    payload = ReportePayload(fecha="2024-05-01", actividades=["Corte"], confirmado=True, supervisor_id="recNOPE")

    with pytest.raises(SubmissionValidationError) as exc_info:
        run(service.submit(payload))

    assert exc_info.value.errors == ["No se pudo identificar al supervisor."]


# ── photos ─────────────────────────────────────────────────────────────────


def test_upload_fotos_caps_at_five(service, fake_cloudinary):
    files = [(f"foto{i}.jpg", b"img", "image/jpeg") for i in range(7)]

    result = run(service.upload_fotos(files))

    assert len(result.urls) == 5
    assert fake_cloudinary.uploads == [f"foto{i}.jpg" for i in range(5)]
    assert result.warnings == ["Solo puedes subir hasta 5 fotos."]


def test_upload_fotos_failure_skips_only_that_photo(service, fake_cloudinary):
    fake_cloudinary.reject.add("mala.jpg")
    files = [("a.jpg", b"1", "image/jpeg"), ("mala.jpg", b"2", "image/jpeg"), ("c.jpg", b"3", "image/jpeg")]

    result = run(service.upload_fotos(files))

    assert result.urls == [
        "https://res.cloudinary.com/demo/image/upload/a.jpg",
        "https://res.cloudinary.com/demo/image/upload/c.jpg",
    ]
    assert result.failed == ["mala.jpg"]
    assert result.warnings == []


def test_upload_fotos_without_cloudinary_config(settings, gateway, uploader):
    settings.CLOUDINARY_CLOUD_NAME = None
    service = SubmissionService(settings, gateway, uploader)

    result = run(service.upload_fotos([("a.jpg", b"1", "image/jpeg")]))

    assert result.urls == []
    assert result.failed == ["a.jpg"]
