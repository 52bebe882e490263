from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.dependencies import get_session_context
from app.core.logging import get_logger
from app.core.session import SessionContext, signed_in
from app.crud import user as user_crud
from app.schemas.user import User as UserSchema, UserProfileUpdate
from app.services.blob_storage import BlobStorage, get_blob_storage

logger = get_logger(__name__)
router = APIRouter(prefix="/users", tags=["users"])
files_router = APIRouter(prefix="/files", tags=["files"])


@router.patch("/me", response_model=UserSchema)
async def update_profile(
    profile: UserProfileUpdate,
    context: SessionContext = Depends(get_session_context)
):
    """Update the display name"""
    user = user_crud.update_profile(context.db, context.user, display_name=profile.display_name)
    signed_in(user)
    logger.info("Profile updated", user_id=user.id)
    return user


@router.post("/me/avatar", response_model=UserSchema)
async def upload_avatar(
    file: UploadFile = File(...),
    context: SessionContext = Depends(get_session_context),
    storage: BlobStorage = Depends(get_blob_storage)
):
    """Store a profile picture and point the user's photo_url at it"""
    if file.content_type not in settings.allowed_image_types:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {file.content_type}")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > settings.max_file_size:
        raise HTTPException(
            status_code=400,
            detail=f"File exceeds the maximum size of {settings.max_file_size} bytes"
        )

    key = f"profile-pictures/{context.user_id}"
    try:
        storage.upload(key, data, file.content_type)
        photo_url = storage.download_url(key)
    except OSError as e:
        logger.error(f"Failed to store profile picture for user {context.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store profile picture"
        )

    user = user_crud.update_profile(context.db, context.user, photo_url=photo_url)
    signed_in(user)
    return user


@files_router.get("/{key:path}")
async def download_file(key: str, storage: BlobStorage = Depends(get_blob_storage)):
    """Serve a stored blob"""
    try:
        found = storage.open(key)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid file key")
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    path, content_type = found
    return FileResponse(path, media_type=content_type)
