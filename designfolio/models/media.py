"""ORM model for media items (images, videos, icons...)."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from designfolio.models.base import Base

MEDIA_TYPES = ("design_image", "video", "icon", "backstage_photo", "map_dot")


class Media(Base):
    """
    Media item owned directly by a user.

    location is stored as opaque GeoJSON; no geospatial queries run against it.
    """

    __tablename__ = "media"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_type = Column(String(32), nullable=False)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    url = Column(String(2048), nullable=False)
    duration = Column(Integer, nullable=True)
    thumbnail_url = Column(String(2048), nullable=True)
    location = Column(JSON, nullable=True)
    class_year = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
