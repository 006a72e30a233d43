"""ORM models for designs and the content hanging off them (tags, blocks, block media)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from designfolio.models.base import Base


class Design(Base):
    """A design owned directly by a user (user_id)."""

    __tablename__ = "designs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    designer_name = Column(String(100), nullable=True)
    class_year = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class DesignTag(Base):
    """Tag attached to a design; owned through designs.user_id."""

    __tablename__ = "design_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    design_id = Column(
        Integer, ForeignKey("designs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(50), nullable=False)
    slug = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DesignBlock(Base):
    """Ordered content block of a design; owned through designs.user_id."""

    __tablename__ = "design_blocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    design_id = Column(
        Integer, ForeignKey("designs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    block_type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class BlockMedia(Base):
    """Link between a design block and a media item; owned through design_blocks -> designs."""

    __tablename__ = "block_media"

    id = Column(Integer, primary_key=True, autoincrement=True)
    design_block_id = Column(
        Integer,
        ForeignKey("design_blocks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_id = Column(
        Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True
    )
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
