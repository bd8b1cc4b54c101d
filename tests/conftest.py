"""
Shared pytest fixtures.

Provides:
    - settings: Settings built from explicit values (no .env needed)
    - fake_airtable: in-memory stand-in for the Airtable REST API
    - gateway / uploader / pdf_service: services wired to httpx.MockTransport
    - client: FastAPI TestClient with the providers overridden
"""

import os

# main.py builds the app at import time, which needs the required settings
os.environ.setdefault("AIRTABLE_API_KEY", "test-key")
os.environ.setdefault("AIRTABLE_BASE_ID", "appTEST")

import httpx
import pytest
from fastapi.testclient import TestClient

from config.settings import Settings, get_settings
from dependencies import providers
from services.airtable_gateway import AirtableGateway
from services.media_client import CloudinaryUploader
from services.pdf_service import PDFService
from tests.fakes import (
    TABLE_PROYECTOS,
    TABLE_SUPERVISORES,
    FakeAirtable,
    FakeCloudinary,
    FakePhotoHost,
)


# ── fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def settings():
    return Settings(
        AIRTABLE_API_KEY="test-key",
        AIRTABLE_BASE_ID="appTEST",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_UPLOAD_PRESET="bitacora_unsigned",
        _env_file=None,
    )


@pytest.fixture
def fake_airtable():
    return FakeAirtable()


@pytest.fixture
def fake_cloudinary():
    return FakeCloudinary()


@pytest.fixture
def photo_host():
    return FakePhotoHost()


@pytest.fixture
def gateway(settings, fake_airtable):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_airtable.handler))
    return AirtableGateway(settings, client=client)


@pytest.fixture
def uploader(settings, fake_cloudinary):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_cloudinary.handler))
    return CloudinaryUploader(settings, client=client)


@pytest.fixture
def pdf_service(settings, photo_host):
    client = httpx.AsyncClient(transport=httpx.MockTransport(photo_host.handler))
    return PDFService(settings, client=client)


@pytest.fixture
def supervisor_con_proyectos(fake_airtable):
    p1 = fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "Torre Norte"})
    p2 = fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "Plaza Sur"})
    fake_airtable.add(TABLE_PROYECTOS, {"Nombre del proyecto": "No asignado"})
    sup = fake_airtable.add(
        TABLE_SUPERVISORES,
        {"Nombre": "Ana Torres", "Activo": True, "Proyectos asignados": [p1, p2]},
    )
    return sup, [p1, p2]


@pytest.fixture
def supervisor_sin_proyectos(fake_airtable):
    return fake_airtable.add(TABLE_SUPERVISORES, {"Nombre": "Luis Paredes", "Activo": True})


@pytest.fixture
def client(settings, gateway, uploader, pdf_service):
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[providers.get_gateway] = lambda: gateway
    app.dependency_overrides[providers.get_uploader] = lambda: uploader
    app.dependency_overrides[providers.get_pdf_service] = lambda: pdf_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
