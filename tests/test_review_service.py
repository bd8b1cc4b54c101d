"""
Tests for the admin review service.

Covers:
  - incident filter equals (tiempo muerto ∉ {None, "Ninguno"}) or (pendiente ∉ {None, "Ninguno"})
  - filters are conjunctive and order independent
  - text search is case-insensitive over fecha / tiempo muerto / pendiente
  - supervisor and project names are resolved; unknown supervisor shows "—"
  - an empty result is not an error
"""

import asyncio
import itertools

import pytest

from schemas.reportes import Reporte
from services.review_service import (
    ReviewService,
    aplicar_filtros,
    filtrar_por_incidencia,
    filtrar_por_supervisor,
    filtrar_por_texto,
    proyectos_sin_nombre,
    tiene_incidencia,
)
from tests.fakes import TABLE_PROYECTOS, TABLE_REPORTES, TABLE_SUPERVISORES


def run(coro):
    return asyncio.run(coro)


REPORTES = [
    Reporte(id="r1", fecha="2024-05-01", supervisores=["recA"], tiempo_muerto="Clima", pendiente="Ninguno"),
    Reporte(id="r2", fecha="2024-05-02", supervisores=["recB"], tiempo_muerto="Ninguno", pendiente="Ninguno"),
    Reporte(id="r3", fecha="2024-05-03", supervisores=["recA"], pendiente="Falta vidrio"),
    Reporte(id="r4", fecha="2024-04-30", supervisores=["recB"]),
    Reporte(id="r5", fecha=None, supervisores=[], tiempo_muerto="Falta de material"),
]


def test_incident_filter_matches_definition():
    def esperado(r):
        return (r.tiempo_muerto not in (None, "Ninguno")) or (r.pendiente not in (None, "Ninguno"))

    assert [r.id for r in filtrar_por_incidencia(REPORTES)] == [r.id for r in REPORTES if esperado(r)]
    assert [tiene_incidencia(r) for r in REPORTES] == [True, False, True, False, True]


def test_supervisor_filter():
    assert [r.id for r in filtrar_por_supervisor(REPORTES, "recA")] == ["r1", "r3"]


def test_text_filter_is_case_insensitive():
    assert [r.id for r in filtrar_por_texto(REPORTES, "VIDRIO")] == ["r3"]
    assert [r.id for r in filtrar_por_texto(REPORTES, "2024-05")] == ["r1", "r2", "r3"]
    assert filtrar_por_texto(REPORTES, "   ") == REPORTES


def test_filters_are_order_independent():
    steps = [
        lambda rs: filtrar_por_incidencia(rs),
        lambda rs: filtrar_por_supervisor(rs, "recA"),
        lambda rs: filtrar_por_texto(rs, "2024"),
    ]
    results = set()
    for order in itertools.permutations(steps):
        reportes = REPORTES
        for step in order:
            reportes = step(reportes)
        results.add(tuple(r.id for r in reportes))

    assert results == {("r1", "r3")}
    combined = aplicar_filtros(REPORTES, supervisor_id="recA", texto="2024", solo_incidencias=True)
    assert [r.id for r in combined] == ["r1", "r3"]


def test_no_match_is_empty_list():
    assert aplicar_filtros(REPORTES, supervisor_id="recZ") == []


# ── service ────────────────────────────────────────────────────────────────


@pytest.fixture
def review(gateway):
    return ReviewService(gateway)


def test_load_denormalizes_names(review, fake_airtable):
    ana = fake_airtable.add(TABLE_SUPERVISORES, {"Nombre": "Ana Torres", "Activo": True})
    fake_airtable.add(TABLE_SUPERVISORES, {"Activo": True})
    fake_airtable.add(TABLE_REPORTES, {
        "Fecha": "2024-05-01",
        "Supervisores": [ana],
        "Proyecto": ["recPROY00000000001"],
        "Nombre del proyecto (from Proyecto)": ["Torre Norte"],
    })
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-04-30", "Supervisores": ["recGONE0000000001"]})

    reportes, supervisores = run(review.load(50))

    assert [s.nombre for s in supervisores] == ["Ana Torres"]
    assert reportes[0].supervisor_id == ana
    assert reportes[0].supervisor_nombre == "Ana Torres"
    assert reportes[0].proyecto_nombre == "Torre Norte"
    assert reportes[1].supervisor_nombre == "—"
    assert reportes[1].proyecto_nombre is None


def test_buscar_applies_filters(review, fake_airtable):
    ana = fake_airtable.add(TABLE_SUPERVISORES, {"Nombre": "Ana"})
    beto = fake_airtable.add(TABLE_SUPERVISORES, {"Nombre": "Beto"})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-01", "Supervisores": [ana], "Tiempo muerto": "Clima"})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-02", "Supervisores": [beto], "Pendiente": "Falta vidrio"})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-03", "Supervisores": [ana], "Tiempo muerto": "Ninguno"})

    reportes, _ = run(review.buscar(50, supervisor_id=ana, solo_incidencias=True))

    assert [r.fecha for r in reportes] == ["2024-05-01"]


def test_get_single_report_for_export(review, fake_airtable):
    ana = fake_airtable.add(TABLE_SUPERVISORES, {"Nombre": "Ana"})
    record_id = fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-01", "Supervisores": [ana]})

    reporte = run(review.get(record_id))

    assert reporte.id == record_id
    assert reporte.supervisor_nombre == "Ana"


def test_project_names_resolved_through_batched_lookup(review, fake_airtable):
    torre = fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "Torre Norte"})
    plaza = fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "Plaza Sur"})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-03", "Proyecto": [torre]})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-02", "Proyecto": [plaza], "Nombre del proyecto (from Proyecto)": [plaza]})
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-01", "Proyecto": [torre]})

    reportes, _ = run(review.load(50))

    assert [r.proyecto_nombre for r in reportes] == ["Torre Norte", "Plaza Sur", "Torre Norte"]
    assert len(fake_airtable.requests_to(TABLE_PROYECTOS)) == 1


def test_project_lookup_skipped_when_lookup_field_has_names(review, fake_airtable):
    fake_airtable.add(TABLE_REPORTES, {
        "Fecha": "2024-05-01",
        "Proyecto": ["recPROY00000000001"],
        "Nombre del proyecto (from Proyecto)": ["Torre Norte"],
    })

    run(review.load(50))

    assert fake_airtable.requests_to(TABLE_PROYECTOS) == []


def test_project_lookup_failure_falls_back_to_id(review, fake_airtable):
    fake_airtable.fail("GET", TABLE_PROYECTOS, 500)
    fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-01", "Proyecto": ["recPROY00000000001"]})

    reportes, _ = run(review.load(50))

    assert reportes[0].proyecto_nombre == "recPROY00000000001"


def test_proyectos_sin_nombre_dedupes():
    reportes = [
        Reporte(id="r1", proyectos=["recP1"]),
        Reporte(id="r2", proyectos=["recP1", "recP2"]),
        Reporte(id="r3", proyectos=["recP3"], proyecto_lookup=["Torre Norte"]),
    ]
    assert proyectos_sin_nombre(reportes) == ["recP1", "recP2"]


def test_get_resolves_project_name_for_export(review, fake_airtable):
    torre = fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "Torre Norte"})
    record_id = fake_airtable.add(TABLE_REPORTES, {"Fecha": "2024-05-01", "Proyecto": [torre]})

    assert run(review.get(record_id)).proyecto_nombre == "Torre Norte"
