"""Design block update/delete and attaching media to a block."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError

from designfolio.api.deps import DbSession, require_ownership, require_role
from designfolio.core.errors import Forbidden, InternalError, NotFound
from designfolio.core.rate_limit import rate_limit
from designfolio.models import BlockMedia
from designfolio.schemas.auth import Identity, Role
from designfolio.schemas.content import (
    BlockMediaCreate,
    BlockMediaOut,
    BlockMediaResponse,
    BlockOut,
    BlockResponse,
    BlockUpdate,
    DeletedResponse,
)
from designfolio.services.content import apply_updates
from designfolio.services.ownership import OwnedResource, ResourceKind, resolve_owner

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(rate_limit("api"))])

Designer = Annotated[Identity, Depends(require_role(Role.DESIGNER))]
OwnedBlock = Annotated[OwnedResource, Depends(require_ownership(ResourceKind.DESIGN_BLOCK))]


@router.put("/{id}", response_model=BlockResponse)
def update_block(body: BlockUpdate, _designer: Designer, resource: OwnedBlock, db: DbSession) -> BlockResponse:
    block = resource.row
    apply_updates(block, body)
    db.commit()
    db.refresh(block)
    return BlockResponse(message="Design block updated successfully!", block=BlockOut.model_validate(block))


@router.delete("/{id}", response_model=DeletedResponse)
def delete_block(_designer: Designer, resource: OwnedBlock, db: DbSession) -> DeletedResponse:
    db.delete(resource.row)
    db.commit()
    return DeletedResponse(message="Design block deleted successfully!")


@router.post("/{id}/media", response_model=BlockMediaResponse, status_code=status.HTTP_201_CREATED)
def attach_media(
    body: BlockMediaCreate,
    designer: Designer,
    resource: OwnedBlock,
    db: DbSession,
) -> BlockMediaResponse:
    """Link one of the caller's media items to the block."""
    try:
        media = resolve_owner(db, ResourceKind.MEDIA, body.media_id)
    except SQLAlchemyError as e:
        logger.exception("media lookup failed media_id=%s", body.media_id)
        raise InternalError("Server error!", details=[str(e)]) from e
    if media is None:
        raise NotFound("Media not found or you don't have access to it!")
    if media.owner_id != designer.id:
        logger.warning(
            "ownership denied user_id=%s kind=media resource_id=%s owner_id=%s",
            designer.id,
            media.id,
            media.owner_id,
        )
        raise Forbidden("You can only modify your own content!")

    link = BlockMedia(
        design_block_id=resource.id,
        media_id=media.id,
        display_order=body.display_order,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return BlockMediaResponse(message="Media attached successfully!", blockMedia=BlockMediaOut.model_validate(link))
