"""Tag catalog endpoints for the Roastr API."""

from fastapi import APIRouter, status

from roastr.api.v1.dependencies import CurrentUserDep, SessionDep
from roastr.schemas.tag import TagCreate, TagResponse
from roastr.services.tags import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=list[TagResponse])
async def list_tags(db: SessionDep) -> list[TagResponse]:
    return [TagResponse.model_validate(tag) for tag in TagService(db).list_tags()]


@router.post("/", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(tag_data: TagCreate, db: SessionDep, current_user: CurrentUserDep) -> TagResponse:
    """Add a tag to the catalog; admins only."""
    tag = TagService(db).create_tag(
        current_user,
        tag_data.name,
        emoji=tag_data.emoji,
        is_sensitive=tag_data.is_sensitive,
    )
    return TagResponse.model_validate(tag)
