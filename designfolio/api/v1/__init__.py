"""API routes."""

from fastapi import APIRouter

from designfolio.api.v1 import auth, block_media, blocks, comments, designs, health, media, tags, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(designs.router, prefix="/designs", tags=["designs"])
router.include_router(tags.router, prefix="/tags", tags=["tags"])
router.include_router(blocks.router, prefix="/blocks", tags=["blocks"])
router.include_router(block_media.router, prefix="/block-media", tags=["blocks"])
router.include_router(media.router, prefix="/media", tags=["media"])
router.include_router(comments.router, prefix="/comments", tags=["comments"])
