"""Design endpoints plus creation of the tags, blocks and comments that belong to a design."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from designfolio.api.deps import (
    CurrentUser,
    DbSession,
    OptionalUser,
    require_ownership,
    require_role,
)
from designfolio.core.errors import NotFound, ValidationFailed
from designfolio.core.rate_limit import rate_limit
from designfolio.models import Comment, Design, DesignBlock, DesignTag
from designfolio.schemas.auth import Identity, Role
from designfolio.schemas.content import (
    BlockCreate,
    BlockOut,
    BlockResponse,
    CommentCreate,
    CommentOut,
    CommentResponse,
    CommentsListResponse,
    DeletedResponse,
    DesignCreate,
    DesignDetailResponse,
    DesignOut,
    DesignResponse,
    DesignsListResponse,
    DesignUpdate,
    TagCreate,
    TagOut,
    TagResponse,
)
from designfolio.schemas.users import Pagination
from designfolio.services.content import apply_updates, generate_slug
from designfolio.services.ownership import OwnedResource, ResourceKind

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(rate_limit("api"))])

Designer = Annotated[Identity, Depends(require_role(Role.DESIGNER))]
OwnedDesign = Annotated[OwnedResource, Depends(require_ownership(ResourceKind.DESIGN))]


def _get_design_or_404(db: Session, design_id: int) -> Design:
    design = db.query(Design).filter(Design.id == design_id).first()
    if design is None:
        raise NotFound("Design not found!")
    return design


@router.get("", response_model=DesignsListResponse)
def list_designs(
    db: DbSession,
    auth: OptionalUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    mine: bool = False,
) -> DesignsListResponse:
    """Public list of designs, newest first. ``mine=true`` narrows to the caller's own."""
    query = db.query(Design)
    if mine:
        if not auth.is_authenticated:
            raise ValidationFailed("mine=true requires authentication!")
        query = query.filter(Design.user_id == auth.identity.id)
    total = query.count()
    designs = (
        query.order_by(Design.created_at.desc(), Design.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return DesignsListResponse(
        message="Designs retrieved successfully!",
        designs=[DesignOut.model_validate(d) for d in designs],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{id}", response_model=DesignDetailResponse)
def get_design(
    id: Annotated[int, Path(gt=0)],
    db: DbSession,
    auth: OptionalUser,
) -> DesignDetailResponse:
    design = _get_design_or_404(db, id)
    tags = db.query(DesignTag).filter(DesignTag.design_id == id).order_by(DesignTag.id).all()
    blocks = (
        db.query(DesignBlock)
        .filter(DesignBlock.design_id == id)
        .order_by(DesignBlock.display_order, DesignBlock.id)
        .all()
    )
    return DesignDetailResponse(
        message="Design retrieved successfully!",
        design=DesignOut.model_validate(design),
        tags=[TagOut.model_validate(t) for t in tags],
        blocks=[BlockOut.model_validate(b) for b in blocks],
        isOwner=auth.is_authenticated and auth.identity.id == design.user_id,
    )


@router.post("", response_model=DesignResponse, status_code=status.HTTP_201_CREATED)
def create_design(body: DesignCreate, identity: Designer, db: DbSession) -> DesignResponse:
    design = Design(user_id=identity.id, **body.model_dump())
    db.add(design)
    db.commit()
    db.refresh(design)
    logger.info("design created design_id=%s user_id=%s", design.id, identity.id)
    return DesignResponse(message="Design created successfully!", design=DesignOut.model_validate(design))


@router.put("/{id}", response_model=DesignResponse)
def update_design(
    body: DesignUpdate,
    _designer: Designer,
    resource: OwnedDesign,
    db: DbSession,
) -> DesignResponse:
    design = resource.row
    apply_updates(design, body)
    db.commit()
    db.refresh(design)
    return DesignResponse(message="Design updated successfully!", design=DesignOut.model_validate(design))


@router.delete("/{id}", response_model=DeletedResponse)
def delete_design(_designer: Designer, resource: OwnedDesign, db: DbSession) -> DeletedResponse:
    db.delete(resource.row)
    db.commit()
    logger.info("design deleted design_id=%s user_id=%s", resource.id, resource.owner_id)
    return DeletedResponse(message="Design deleted successfully!")


@router.post("/{id}/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    body: TagCreate,
    _designer: Designer,
    resource: OwnedDesign,
    db: DbSession,
) -> TagResponse:
    slug = body.slug or generate_slug(body.name)
    if not slug:
        raise ValidationFailed("Tag name must contain at least one letter or number!")
    tag = DesignTag(design_id=resource.id, name=body.name, slug=slug, description=body.description)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return TagResponse(message="Tag created successfully!", tag=TagOut.model_validate(tag))


@router.post("/{id}/blocks", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
def create_block(
    body: BlockCreate,
    _designer: Designer,
    resource: OwnedDesign,
    db: DbSession,
) -> BlockResponse:
    block = DesignBlock(design_id=resource.id, **body.model_dump())
    db.add(block)
    db.commit()
    db.refresh(block)
    return BlockResponse(message="Design block created successfully!", block=BlockOut.model_validate(block))


@router.get("/{id}/comments", response_model=CommentsListResponse)
def list_comments(id: Annotated[int, Path(gt=0)], db: DbSession) -> CommentsListResponse:
    _get_design_or_404(db, id)
    comments = (
        db.query(Comment)
        .filter(Comment.design_id == id)
        .order_by(Comment.created_at, Comment.id)
        .all()
    )
    return CommentsListResponse(
        message="Comments retrieved successfully!",
        comments=[CommentOut.model_validate(c) for c in comments],
    )


@router.post("/{id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    id: Annotated[int, Path(gt=0)],
    body: CommentCreate,
    identity: CurrentUser,
    db: DbSession,
) -> CommentResponse:
    """Any signed-in user may comment. Block and parent comment must belong to the same design."""
    _get_design_or_404(db, id)
    if body.design_block_id is not None:
        block = (
            db.query(DesignBlock.id)
            .filter(DesignBlock.id == body.design_block_id, DesignBlock.design_id == id)
            .first()
        )
        if block is None:
            raise NotFound("Design block not found!")
    if body.parent_comment_id is not None:
        parent = (
            db.query(Comment.id)
            .filter(Comment.id == body.parent_comment_id, Comment.design_id == id)
            .first()
        )
        if parent is None:
            raise NotFound("Parent comment not found!")

    comment = Comment(user_id=identity.id, design_id=id, **body.model_dump())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return CommentResponse(message="Comment created successfully!", comment=CommentOut.model_validate(comment))
