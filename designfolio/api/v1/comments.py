"""Comment edit/delete; only the author may change a comment."""

from typing import Annotated

from fastapi import APIRouter, Depends

from designfolio.api.deps import DbSession, require_ownership
from designfolio.core.rate_limit import rate_limit
from designfolio.schemas.content import CommentOut, CommentResponse, CommentUpdate, DeletedResponse
from designfolio.services.content import apply_updates
from designfolio.services.ownership import OwnedResource, ResourceKind

router = APIRouter(dependencies=[Depends(rate_limit("api"))])

OwnedComment = Annotated[OwnedResource, Depends(require_ownership(ResourceKind.COMMENT))]


@router.put("/{id}", response_model=CommentResponse)
def update_comment(body: CommentUpdate, resource: OwnedComment, db: DbSession) -> CommentResponse:
    comment = resource.row
    apply_updates(comment, body)
    db.commit()
    db.refresh(comment)
    return CommentResponse(message="Comment updated successfully!", comment=CommentOut.model_validate(comment))


@router.delete("/{id}", response_model=DeletedResponse)
def delete_comment(resource: OwnedComment, db: DbSession) -> DeletedResponse:
    db.delete(resource.row)
    db.commit()
    return DeletedResponse(message="Comment deleted successfully!")
