"""
Ownership resolution for user content.

Every ownable resource kind maps to an ``OwnershipPath``: the model holding the
row plus the foreign-key hops leading to the model that carries ``user_id``.
Resolution runs one SELECT with as many JOINs as the path has hops.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from designfolio.models import BlockMedia, Comment, Design, DesignBlock, DesignTag, Media
from designfolio.models.base import Base


class ResourceKind(str, Enum):
    DESIGN = "design"
    DESIGN_TAG = "design_tag"
    DESIGN_BLOCK = "design_block"
    MEDIA = "media"
    BLOCK_MEDIA = "block_media"
    COMMENT = "comment"


@dataclass(frozen=True)
class Hop:
    """Follow ``foreign_key`` on the current model to ``parent.id``."""

    foreign_key: str
    parent: type[Base]


@dataclass(frozen=True)
class OwnershipPath:
    model: type[Base]
    hops: tuple[Hop, ...] = ()
    label: str = ""

    @property
    def depth(self) -> int:
        return len(self.hops)

    @property
    def owner_model(self) -> type[Base]:
        return self.hops[-1].parent if self.hops else self.model


OWNERSHIP_PATHS: dict[ResourceKind, OwnershipPath] = {
    ResourceKind.DESIGN: OwnershipPath(Design, label="Design"),
    ResourceKind.MEDIA: OwnershipPath(Media, label="Media"),
    ResourceKind.COMMENT: OwnershipPath(Comment, label="Comment"),
    ResourceKind.DESIGN_TAG: OwnershipPath(
        DesignTag, (Hop("design_id", Design),), label="Design tag"
    ),
    ResourceKind.DESIGN_BLOCK: OwnershipPath(
        DesignBlock, (Hop("design_id", Design),), label="Design block"
    ),
    ResourceKind.BLOCK_MEDIA: OwnershipPath(
        BlockMedia,
        (Hop("design_block_id", DesignBlock), Hop("design_id", Design)),
        label="Block media",
    ),
}


@dataclass(frozen=True)
class OwnedResource:
    """A resolved resource row and the id of the user owning it."""

    kind: ResourceKind
    id: int
    owner_id: int
    row: Any


def get_ownership_path(kind: ResourceKind | str) -> OwnershipPath:
    """Return the path for ``kind``; unknown kinds raise ValueError."""
    return OWNERSHIP_PATHS[ResourceKind(kind)]


def resolve_owner(db: Session, kind: ResourceKind | str, resource_id: int) -> OwnedResource | None:
    """
    Load the resource and its owning user id in a single query.

    Returns None when no row has ``resource_id``. Database errors propagate.
    """
    kind = ResourceKind(kind)
    path = OWNERSHIP_PATHS[kind]
    stmt = select(path.model, path.owner_model.user_id)
    current = path.model
    for hop in path.hops:
        stmt = stmt.join(hop.parent, getattr(current, hop.foreign_key) == hop.parent.id)
        current = hop.parent
    stmt = stmt.where(path.model.id == resource_id)

    result = db.execute(stmt).first()
    if result is None:
        return None
    row, owner_id = result
    return OwnedResource(kind=kind, id=resource_id, owner_id=owner_id, row=row)
