"""Design tag update/delete, gated on ownership of the parent design."""

from typing import Annotated

from fastapi import APIRouter, Depends

from designfolio.api.deps import DbSession, require_ownership, require_role
from designfolio.core.errors import ValidationFailed
from designfolio.core.rate_limit import rate_limit
from designfolio.schemas.auth import Identity, Role
from designfolio.schemas.content import DeletedResponse, TagOut, TagResponse, TagUpdate
from designfolio.services.content import apply_updates, generate_slug
from designfolio.services.ownership import OwnedResource, ResourceKind

router = APIRouter(dependencies=[Depends(rate_limit("api"))])

Designer = Annotated[Identity, Depends(require_role(Role.DESIGNER))]
OwnedTag = Annotated[OwnedResource, Depends(require_ownership(ResourceKind.DESIGN_TAG))]


@router.put("/{id}", response_model=TagResponse)
def update_tag(body: TagUpdate, _designer: Designer, resource: OwnedTag, db: DbSession) -> TagResponse:
    tag = resource.row
    changes = apply_updates(tag, body)
    if "name" in changes and "slug" not in changes:
        tag.slug = generate_slug(tag.name)
    if not tag.slug:
        raise ValidationFailed("Tag name must contain at least one letter or number!")
    db.commit()
    db.refresh(tag)
    return TagResponse(message="Tag updated successfully!", tag=TagOut.model_validate(tag))


@router.delete("/{id}", response_model=DeletedResponse)
def delete_tag(_designer: Designer, resource: OwnedTag, db: DbSession) -> DeletedResponse:
    db.delete(resource.row)
    db.commit()
    return DeletedResponse(message="Tag deleted successfully!")
