"""Media endpoints. Files live in S3; rows hold their URLs."""

import logging
import os
from typing import Annotated

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from designfolio.api.deps import CurrentUser, DbSession, require_ownership, require_role
from designfolio.core.errors import InternalError, NotFound, ServiceUnavailable, ValidationFailed
from designfolio.core.rate_limit import rate_limit
from designfolio.models import Media
from designfolio.schemas.auth import Identity, Role
from designfolio.schemas.content import (
    DeletedResponse,
    GeoPoint,
    MediaCreate,
    MediaListResponse,
    MediaOut,
    MediaResponse,
    MediaType,
    MediaUpdate,
)
from designfolio.services.content import apply_updates
from designfolio.services.ownership import OwnedResource, ResourceKind
from designfolio.services.storage import (
    ALLOWED_EXTENSIONS,
    VIDEO_UPLOADS,
    S3Storage,
    build_object_key,
    find_upload_rule,
    get_storage,
)

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(rate_limit("api"))])

Designer = Annotated[Identity, Depends(require_role(Role.DESIGNER))]
OwnedMedia = Annotated[OwnedResource, Depends(require_ownership(ResourceKind.MEDIA))]
Storage = Annotated[S3Storage | None, Depends(get_storage)]


@router.get("", response_model=MediaListResponse)
def list_my_media(identity: CurrentUser, db: DbSession) -> MediaListResponse:
    items = (
        db.query(Media)
        .filter(Media.user_id == identity.id)
        .order_by(Media.created_at.desc(), Media.id.desc())
        .all()
    )
    return MediaListResponse(
        message="Media retrieved successfully!",
        media=[MediaOut.model_validate(m) for m in items],
    )


@router.post("", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
def create_media(body: MediaCreate, identity: Designer, db: DbSession) -> MediaResponse:
    media = Media(user_id=identity.id, **body.model_dump(mode="json"))
    db.add(media)
    db.commit()
    db.refresh(media)
    logger.info("media created media_id=%s user_id=%s type=%s", media.id, identity.id, media.media_type)
    return MediaResponse(message="Media created successfully!", media=MediaOut.model_validate(media))


@router.post(
    "/upload",
    response_model=MediaResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("upload"))],
)
def upload_media(
    identity: Designer,
    db: DbSession,
    storage: Storage,
    file: Annotated[UploadFile, File()],
    media_type: Annotated[MediaType | None, Form()] = None,
    title: Annotated[str | None, Form(min_length=1, max_length=200)] = None,
    description: Annotated[str | None, Form(max_length=2000)] = None,
    class_year: Annotated[int | None, Form(ge=1900, le=2100)] = None,
    longitude: Annotated[float | None, Form()] = None,
    latitude: Annotated[float | None, Form()] = None,
) -> MediaResponse:
    """
    Store an image or video in S3 and create its media row in one step.

    media_type defaults to ``video`` for video files and ``design_image``
    otherwise. If the row cannot be saved the object is removed again.
    """
    if storage is None:
        raise ServiceUnavailable("Media storage is not configured!", code="STORAGE_NOT_CONFIGURED")

    content_type = file.content_type or ""
    filename = file.filename or ""
    rule = find_upload_rule(content_type, filename)
    if rule is None:
        raise ValidationFailed(
            "Invalid file type!",
            details=[f"Allowed types: {', '.join(ALLOWED_EXTENSIONS)}"],
        )

    is_video = rule is VIDEO_UPLOADS
    if media_type is None:
        media_type = "video" if is_video else "design_image"
    elif (media_type == "video") != is_video:
        raise ValidationFailed(
            "Validation failed!",
            details=[{"field": "media_type", "message": f"{media_type} cannot be used for {rule.folder}!"}],
        )

    location = None
    if (longitude is None) != (latitude is None):
        raise ValidationFailed(
            "Validation failed!",
            details=[{"field": "location", "message": "longitude and latitude must be sent together!"}],
        )
    if longitude is not None:
        try:
            location = GeoPoint(type="Point", coordinates=(longitude, latitude))
        except ValidationError as e:
            raise ValidationFailed(
                "Validation failed!",
                details=[{"field": "location", "message": err["msg"]} for err in e.errors()],
            ) from e

    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    if size == 0:
        raise ValidationFailed("Empty file!")
    if size > rule.max_bytes:
        raise ValidationFailed(
            "File too large!",
            details=["File size exceeds the maximum allowed limit!"],
        )

    key = build_object_key(rule, filename)
    try:
        url = storage.put(file.file, key, content_type)
    except (BotoCoreError, ClientError) as e:
        logger.exception("media upload failed user_id=%s key=%s", identity.id, key)
        raise InternalError("Failed to upload media!", details=[str(e)]) from e

    media = Media(
        user_id=identity.id,
        media_type=media_type,
        title=title,
        description=description,
        url=url,
        location=location.model_dump(mode="json") if location else None,
        class_year=class_year,
    )
    db.add(media)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _discard_object(storage, key)
        raise
    db.refresh(media)
    logger.info(
        "media uploaded media_id=%s user_id=%s type=%s bytes=%s key=%s",
        media.id,
        identity.id,
        media.media_type,
        size,
        key,
    )
    return MediaResponse(message="Media uploaded successfully!", media=MediaOut.model_validate(media))


def _discard_object(storage: S3Storage, key: str) -> None:
    try:
        storage.delete(key)
    except (BotoCoreError, ClientError):
        logger.exception("orphaned media object key=%s", key)


@router.get("/{id}", response_model=MediaResponse)
def get_media(id: Annotated[int, Path(gt=0)], db: DbSession) -> MediaResponse:
    media = db.query(Media).filter(Media.id == id).first()
    if media is None:
        raise NotFound("Media not found!")
    return MediaResponse(message="Media retrieved successfully!", media=MediaOut.model_validate(media))


@router.put("/{id}", response_model=MediaResponse)
def update_media(body: MediaUpdate, _designer: Designer, resource: OwnedMedia, db: DbSession) -> MediaResponse:
    media = resource.row
    apply_updates(media, body)
    db.commit()
    db.refresh(media)
    return MediaResponse(message="Media updated successfully!", media=MediaOut.model_validate(media))


@router.delete("/{id}", response_model=DeletedResponse)
def delete_media(
    _designer: Designer, resource: OwnedMedia, db: DbSession, storage: Storage
) -> DeletedResponse:
    """Remove the S3 object first when this bucket holds it, then the row."""
    media = resource.row
    key = storage.key_from_url(media.url) if storage is not None else None
    if key is not None:
        try:
            storage.delete(key)
        except (BotoCoreError, ClientError) as e:
            logger.exception("media object delete failed media_id=%s key=%s", resource.id, key)
            raise InternalError("Failed to delete media!", details=[str(e)]) from e
    db.delete(media)
    db.commit()
    logger.info("media deleted media_id=%s user_id=%s", resource.id, resource.owner_id)
    return DeletedResponse(message="Media deleted successfully!")
