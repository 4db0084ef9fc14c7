"""
Catalog routes for gallery entries.
Listing is public; create, update and delete require the admin password header.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from pfp_gallery.database import get_db
from pfp_gallery.schemas import (
    OkResponse,
    PfpCreate,
    PfpItemResponse,
    PfpListResponse,
    PfpResponse,
    PfpUpdate,
)
from pfp_gallery.services import catalog_store
from pfp_gallery.utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pfps"])


@router.get("/pfps", response_model=PfpListResponse)
async def list_pfps(db: AsyncSession = Depends(get_db)):
    """
    List all gallery entries, newest first.

    Raises:
        HTTPException: 500 if the database query fails
    """
    try:
        items = await catalog_store.list_pfps(db)
        logger.info(f"Retrieved {len(items)} pfps")
        return PfpListResponse(items=[PfpResponse.model_validate(item) for item in items])
    except Exception as e:
        logger.error(f"Failed to retrieve pfps: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )


@router.post("/pfps", response_model=PfpItemResponse)
async def add_pfp(
    payload: Optional[PfpCreate] = None,
    authenticated: bool = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a gallery entry.
    Requires the admin password header.

    Args:
        payload: title and url are required; author, cat and tags are optional

    Raises:
        HTTPException: 400 if title or url is missing, 500 if the insert fails
    """
    payload = payload or PfpCreate()
    if not payload.title or not payload.url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="title and url required",
        )

    try:
        pfp = await catalog_store.add_pfp(
            db,
            title=payload.title,
            url=payload.url,
            author=payload.author,
            cat=payload.cat,
            tags=payload.tags,
        )
        return PfpItemResponse(item=PfpResponse.model_validate(pfp))
    except Exception as e:
        logger.error(f"Error adding pfp: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )


@router.put("/pfps/{pfp_id}", response_model=PfpItemResponse)
async def update_pfp(
    pfp_id: str,
    payload: Optional[PfpUpdate] = None,
    authenticated: bool = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update a gallery entry.
    Requires the admin password header.

    Only non-empty text fields and a list-valued tags are applied. An unknown
    id is not an error: the response carries item = null.
    """
    payload = payload or PfpUpdate()
    try:
        pfp = await catalog_store.update_pfp(db, pfp_id, payload.to_updates())
        item = PfpResponse.model_validate(pfp) if pfp is not None else None
        return PfpItemResponse(item=item)
    except Exception as e:
        logger.error(f"Error updating pfp {pfp_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )


@router.delete("/pfps/{pfp_id}", response_model=OkResponse)
async def delete_pfp(
    pfp_id: str,
    authenticated: bool = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a gallery entry.
    Requires the admin password header. Succeeds whether or not the id exists.
    """
    try:
        await catalog_store.delete_pfp(db, pfp_id)
        return OkResponse()
    except Exception as e:
        logger.error(f"Error deleting pfp {pfp_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
