"""
Catalog store: gallery entries persisted through SQLAlchemy.
Functions take the request's AsyncSession; commits happen here so the
handler can return the persisted state.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pfp_gallery.models import Pfp

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "unknown"
DEFAULT_CATEGORY = "top"


async def list_pfps(db: AsyncSession) -> List[Pfp]:
    """Return every entry, newest first."""
    result = await db.execute(select(Pfp).order_by(Pfp.created_at.desc()))
    return list(result.scalars().all())


async def add_pfp(
    db: AsyncSession,
    title: str,
    url: str,
    author: Optional[str] = None,
    cat: Optional[str] = None,
    tags: Any = None,
) -> Pfp:
    """
    Create an entry, applying defaults for author, category and tags.

    A tags value that is not a list is treated as absent.
    """
    pfp = Pfp(
        title=title,
        url=url,
        author=author or DEFAULT_AUTHOR,
        cat=cat or DEFAULT_CATEGORY,
        tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
    )
    db.add(pfp)
    await db.commit()
    await db.refresh(pfp)
    logger.info(f"Created pfp {pfp.id}: {pfp.title!r}")
    return pfp


async def update_pfp(db: AsyncSession, pfp_id: str, updates: Dict[str, Any]) -> Optional[Pfp]:
    """
    Apply a partial update to one entry.

    Returns:
        The entry after the update, or None if no entry has this id
    """
    result = await db.execute(select(Pfp).where(Pfp.id == pfp_id))
    pfp = result.scalar_one_or_none()
    if pfp is None:
        logger.info(f"Update skipped, pfp {pfp_id} not found")
        return None

    for field, value in updates.items():
        setattr(pfp, field, value)
    await db.commit()
    await db.refresh(pfp)
    logger.info(f"Updated pfp {pfp_id}: {sorted(updates)}")
    return pfp


async def delete_pfp(db: AsyncSession, pfp_id: str) -> None:
    """Delete one entry; a missing id is not an error."""
    result = await db.execute(delete(Pfp).where(Pfp.id == pfp_id))
    await db.commit()
    logger.info(f"Deleted pfp {pfp_id} ({result.rowcount} row(s))")
