"""Tag catalog management."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from roastr.core.errors import ConflictError, PermissionDeniedError, ValidationError
from roastr.db.session import unit_of_work
from roastr.models import Tag, UserProfile, UserRole

logger = logging.getLogger(__name__)

# (name, emoji, is_sensitive)
DEFAULT_TAGS: tuple[tuple[str, str, bool], ...] = (
    ("Roast", "🔥", False),
    ("Joke", "😂", False),
    ("Dark", "☠️", False),
    ("Pun", "🧀", False),
    ("Wordplay", "✍️", False),
    ("NSFW", "🔞", True),
    ("Hindi", "🇮🇳", False),
    ("Hinglish", "🗣️", False),
    ("English", "🇬🇧", False),
)


class TagService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_tags(self) -> list[Tag]:
        return list(self.db.execute(select(Tag).order_by(Tag.id)).scalars())

    def get_by_name(self, name: str) -> Tag | None:
        return self.db.execute(select(Tag).where(Tag.name == name)).scalars().first()

    def create_tag(
        self,
        actor: UserProfile | None,
        name: str,
        emoji: str = "",
        is_sensitive: bool = False,
    ) -> Tag:
        """Add a tag to the catalog; admins only, names are unique."""
        if actor is None or not actor.role.at_least(UserRole.ADMIN):
            raise PermissionDeniedError("Admin privileges required")
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Tag name must not be empty")
        if self.get_by_name(cleaned) is not None:
            raise ConflictError(f"Tag {cleaned!r} already exists")
        with unit_of_work(self.db):
            tag = Tag(name=cleaned, emoji=emoji, is_sensitive=is_sensitive)
            self.db.add(tag)
        logger.info("Tag %r created by %s", cleaned, actor.id)
        return tag

    def seed_defaults(self) -> list[Tag]:
        """Insert any missing default tags and return the ones created."""
        existing = {tag.name for tag in self.list_tags()}
        created: list[Tag] = []
        with unit_of_work(self.db):
            for name, emoji, is_sensitive in DEFAULT_TAGS:
                if name in existing:
                    continue
                tag = Tag(name=name, emoji=emoji, is_sensitive=is_sensitive)
                self.db.add(tag)
                created.append(tag)
        if created:
            logger.info("Seeded %d default tags", len(created))
        return created
