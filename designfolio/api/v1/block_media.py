"""Detach media from a design block (ownership resolved through block -> design)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from designfolio.api.deps import DbSession, require_ownership, require_role
from designfolio.core.rate_limit import rate_limit
from designfolio.schemas.auth import Identity, Role
from designfolio.schemas.content import DeletedResponse
from designfolio.services.ownership import OwnedResource, ResourceKind

router = APIRouter(dependencies=[Depends(rate_limit("api"))])


@router.delete("/{id}", response_model=DeletedResponse)
def detach_media(
    _designer: Annotated[Identity, Depends(require_role(Role.DESIGNER))],
    resource: Annotated[OwnedResource, Depends(require_ownership(ResourceKind.BLOCK_MEDIA))],
    db: DbSession,
) -> DeletedResponse:
    db.delete(resource.row)
    db.commit()
    return DeletedResponse(message="Block media deleted successfully!")
