import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute


def generate_slug(text: str) -> str:
    """Lower-case, ASCII-only, hyphen-separated form of ``text``."""
    normalized = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9\s_-]", "", normalized.strip().lower())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def generate_unique_slug(
    db: Session,
    column: InstrumentedAttribute,
    text: str,
    *,
    exclude_id: str | None = None,
) -> str:
    """
    Slug for ``text`` that is not yet taken in ``column``; collisions get
    ``-1``, ``-2`` ... appended.
    """
    base = generate_slug(text) or "item"
    model = column.class_
    candidate = base
    suffix = 0
    while True:
        stmt = select(model.id).where(column == candidate)
        if exclude_id:
            stmt = stmt.where(model.id != exclude_id)
        if db.execute(stmt.limit(1)).scalar_one_or_none() is None:
            return candidate
        suffix += 1
        candidate = f"{base}-{suffix}"
