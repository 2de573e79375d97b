from fastapi import APIRouter, Depends, File, Form, UploadFile

from backoffice.core.api_docs import error_responses
from backoffice.core.errors import ValidationError
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.dashboard import UploadOut
from backoffice.services.upload_service import read_upload, store_upload

router = APIRouter(
    prefix="/upload",
    tags=["upload"],
    dependencies=[Depends(get_current_admin)],
)


@router.post(
    "",
    response_model=UploadOut,
    summary="Upload an image",
    description="JPEG, PNG or WebP up to 5 MB into one of the allowed directories.",
    responses=error_responses(400),
)
def upload_file(
    file: UploadFile | None = File(default=None),
    directory: str = Form(default="general"),
):
    if file is None:
        raise ValidationError("No file provided")
    data = read_upload(file.file)
    return store_upload(
        directory=directory,
        original_name=file.filename or "upload",
        content_type=file.content_type,
        data=data,
    )
