# assignment_eval/api/v1/endpoints/upload.py
from fastapi import APIRouter, Depends, File, UploadFile, status

from assignment_eval.core.security import ActorContext, get_current_actor
from assignment_eval.schemas.common import ApiResponse
from assignment_eval.schemas.upload import StoredFile
from assignment_eval.services import storage_service

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("", response_model=ApiResponse[StoredFile], status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    actor: ActorContext = Depends(get_current_actor),
):
    stored = storage_service.save_upload(file)
    return ApiResponse[StoredFile](data=stored, message="File uploaded successfully")


@router.delete("/{filename}", response_model=ApiResponse)
def delete_file(
    filename: str,
    actor: ActorContext = Depends(get_current_actor),
):
    storage_service.delete_upload(filename)
    return ApiResponse(message="File deleted successfully")
