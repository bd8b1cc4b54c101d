from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from dependencies.providers import get_submission_service
from schemas.common import ERROR_RESPONSES
from services.submission_service import SubmissionService

router = APIRouter(prefix="/api", tags=["Fotos"], responses=ERROR_RESPONSES)


# ✅ [UPLOAD] photo evidence -> Cloudinary URLs (max 5, one upload per photo)
@router.post("/fotos")
async def upload_fotos(
    fotos: List[UploadFile] = File(...),
    service: SubmissionService = Depends(get_submission_service),
):
    files = [(f.filename or f"foto_{i + 1}", await f.read(), f.content_type) for i, f in enumerate(fotos)]
    result = await service.upload_fotos(files)
    return {"ok": True, **result.model_dump(by_alias=True)}
