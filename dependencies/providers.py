"""
FastAPI dependency providers.

Everything is built from the cached Settings so tests can swap any piece
through app.dependency_overrides.
"""
from fastapi import Depends

from config.settings import Settings, get_settings
from services.airtable_gateway import AirtableGateway
from services.media_client import CloudinaryUploader
from services.pdf_service import PDFService
from services.review_service import ReviewService
from services.submission_service import SubmissionService


def get_gateway(settings: Settings = Depends(get_settings)) -> AirtableGateway:
    return AirtableGateway(settings)


def get_uploader(settings: Settings = Depends(get_settings)) -> CloudinaryUploader:
    return CloudinaryUploader(settings)


def get_submission_service(
    settings: Settings = Depends(get_settings),
    gateway: AirtableGateway = Depends(get_gateway),
    uploader: CloudinaryUploader = Depends(get_uploader),
) -> SubmissionService:
    return SubmissionService(settings, gateway, uploader)


def get_review_service(gateway: AirtableGateway = Depends(get_gateway)) -> ReviewService:
    return ReviewService(gateway)


def get_pdf_service(settings: Settings = Depends(get_settings)) -> PDFService:
    return PDFService(settings)
