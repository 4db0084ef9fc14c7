"""
Image upload and gallery listing routes.
Uploaded files land in the public uploads directory and are served under /uploads.
"""
from fastapi import APIRouter, Depends, File, Header, HTTPException, Request, UploadFile, status
from typing import Optional
import logging

from pfp_gallery.schemas import GalleryItem, GalleryListResponse, UploadResponse
from pfp_gallery.services.upload_store import UploadRejected, UploadStore
from pfp_gallery.utils.auth import ADMIN_HEADER, is_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


def get_upload_store(request: Request) -> UploadStore:
    """FastAPI dependency returning the upload store built by create_app()."""
    return request.app.state.upload_store


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    request: Request,
    file: Optional[UploadFile] = File(None),
    x_admin_pass: Optional[str] = Header(None, alias=ADMIN_HEADER),
    store: UploadStore = Depends(get_upload_store),
):
    """
    Upload one image (multipart field "file").
    Requires the admin password header.

    The file is stored before the password is checked; when the check fails
    the stored file is deleted again before the 401 is returned.

    Returns:
        UploadResponse: Public URL (/uploads/<filename>) and generated filename

    Raises:
        HTTPException: 400 if the file is missing, not an image or too large,
            401 if unauthorized, 500 if the file cannot be written
    """
    stored = None
    try:
        if file is not None:
            stored = await store.save(file)
    except UploadRejected as e:
        logger.warning(f"Rejected upload {file.filename!r}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except Exception as e:
        logger.error(f"Error storing upload: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    finally:
        if file is not None:
            await file.close()

    if not is_admin(request, x_admin_pass):
        if stored is not None:
            store.remove(stored)
        logger.warning(f"Unauthorized upload attempt from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    logger.info(f"Upload accepted: {stored.url}")
    return UploadResponse(url=stored.url, filename=stored.filename)


@router.get("/gallery", response_model=GalleryListResponse)
async def list_gallery(store: UploadStore = Depends(get_upload_store)):
    """List uploaded images as {url, name} pairs."""
    items = store.list_gallery()
    logger.info(f"Gallery listing: {len(items)} file(s)")
    return GalleryListResponse(items=[GalleryItem(**item) for item in items])
