"""Request/response schemas for designs, tags, blocks, media and comments."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationInfo, field_validator

from designfolio.schemas.users import Pagination

MediaType = Literal["design_image", "video", "icon", "backstage_photo", "map_dot"]


class GeoPoint(BaseModel):
    """GeoJSON Point; stored as-is, never queried spatially."""

    type: Literal["Point"]
    coordinates: tuple[float, float]

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: tuple[float, float]) -> tuple[float, float]:
        lon, lat = v
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            raise ValueError(
                "Location coordinates must be valid longitude (-180 to 180) "
                "and latitude (-90 to 90)!"
            )
        return v


def reject_null(value: Any, info: ValidationInfo) -> Any:
    """Update bodies: a field may be omitted, but not sent as null when its column is NOT NULL."""
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null!")
    return value


# Designs

class DesignCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    designer_name: str | None = Field(default=None, min_length=1, max_length=100)
    class_year: int = Field(..., ge=1900, le=2100)


class DesignUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    designer_name: str | None = Field(default=None, min_length=1, max_length=100)
    class_year: int | None = Field(default=None, ge=1900, le=2100)

    check_not_null = field_validator("title", "class_year")(reject_null)


class DesignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str | None = None
    designer_name: str | None = None
    class_year: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DesignResponse(BaseModel):
    message: str
    design: DesignOut


class DesignDetailResponse(BaseModel):
    message: str
    design: DesignOut
    tags: list["TagOut"]
    blocks: list["BlockOut"]
    isOwner: bool = False


class DesignsListResponse(BaseModel):
    message: str
    designs: list[DesignOut]
    pagination: Pagination


# Tags

class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    slug: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=1000)


class TagUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    slug: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=1000)

    check_not_null = field_validator("name", "slug")(reject_null)


class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    design_id: int
    name: str
    slug: str
    description: str | None = None


class TagResponse(BaseModel):
    message: str
    tag: TagOut


# Blocks

class BlockCreate(BaseModel):
    block_type: str = Field(..., min_length=1, max_length=50)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=50000)
    display_order: int = Field(..., ge=0)


class BlockUpdate(BaseModel):
    block_type: str | None = Field(default=None, min_length=1, max_length=50)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=50000)
    display_order: int | None = Field(default=None, ge=0)

    check_not_null = field_validator("block_type", "display_order")(reject_null)


class BlockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    design_id: int
    block_type: str
    title: str | None = None
    content: str | None = None
    display_order: int


class BlockResponse(BaseModel):
    message: str
    block: BlockOut


class BlockMediaCreate(BaseModel):
    media_id: int = Field(..., ge=1)
    display_order: int = Field(default=0, ge=0)


class BlockMediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    design_block_id: int
    media_id: int
    display_order: int


class BlockMediaResponse(BaseModel):
    message: str
    blockMedia: BlockMediaOut


# Media

class MediaCreate(BaseModel):
    media_type: MediaType
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    url: HttpUrl
    duration: int | None = Field(default=None, ge=0)
    thumbnail_url: HttpUrl | None = None
    location: GeoPoint | None = None
    class_year: int | None = Field(default=None, ge=1900, le=2100)


class MediaUpdate(BaseModel):
    media_type: MediaType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    url: HttpUrl | None = None
    duration: int | None = Field(default=None, ge=0)
    thumbnail_url: HttpUrl | None = None
    location: GeoPoint | None = None
    class_year: int | None = Field(default=None, ge=1900, le=2100)

    check_not_null = field_validator("media_type", "url")(reject_null)


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    media_type: str
    title: str | None = None
    description: str | None = None
    url: str
    duration: int | None = None
    thumbnail_url: str | None = None
    location: dict[str, Any] | None = None
    class_year: int | None = None
    created_at: datetime | None = None


class MediaResponse(BaseModel):
    message: str
    media: MediaOut


class MediaListResponse(BaseModel):
    message: str
    media: list[MediaOut]


# Comments

class CommentCreate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=5000)
    design_block_id: int | None = Field(default=None, ge=1)
    parent_comment_id: int | None = Field(default=None, ge=1)


class CommentUpdate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=5000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    design_id: int
    design_block_id: int | None = None
    parent_comment_id: int | None = None
    comment_text: str
    created_at: datetime | None = None


class CommentResponse(BaseModel):
    message: str
    comment: CommentOut


class CommentsListResponse(BaseModel):
    message: str
    comments: list[CommentOut]


class DeletedResponse(BaseModel):
    message: str


DesignDetailResponse.model_rebuild()
