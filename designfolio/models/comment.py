"""ORM model for comments on designs (optionally on a block, optionally threaded)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func

from designfolio.models.base import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    design_id = Column(
        Integer, ForeignKey("designs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    design_block_id = Column(
        Integer, ForeignKey("design_blocks.id", ondelete="SET NULL"), nullable=True
    )
    parent_comment_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
