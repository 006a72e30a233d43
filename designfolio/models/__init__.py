"""SQLAlchemy ORM models."""

from designfolio.models.base import Base
from designfolio.models.comment import Comment
from designfolio.models.design import BlockMedia, Design, DesignBlock, DesignTag
from designfolio.models.media import Media
from designfolio.models.user import User

__all__ = [
    "Base",
    "BlockMedia",
    "Comment",
    "Design",
    "DesignBlock",
    "DesignTag",
    "Media",
    "User",
]
