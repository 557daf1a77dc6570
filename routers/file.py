import base64
import binascii
import logging
import os
import urllib.parse
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, Response
from starlette.datastructures import UploadFile as StarletteUploadFile
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import get_db
from models.file import FileRecord
from models.user import User
from schemas.file import FileRecordOut, UploadResponse, FileItem, FavoriteUpdate, RenameRequest
from utils.jwt_utils import get_current_user, get_optional_user
from utils.file_manager import (
    DEFAULT_MIME_TYPE,
    MAX_STORAGE_SIZE,
    DATE_RANGES,
    SORT_FIELDS,
    PLURAL_TO_CATEGORY,
    to_file_item,
    search_files,
    filter_files,
    sort_files,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(100 * 1024 * 1024)))  # 100MB

router = APIRouter(prefix="/api", tags=["Files"])


def get_owned_file(db: Session, file_id: int, user_id: int) -> FileRecord:
    file_obj = (
        db.query(FileRecord)
        .filter(FileRecord.id == file_id, FileRecord.user_id == user_id)
        .first()
    )
    if not file_obj:
        raise HTTPException(status_code=404, detail="File not found or unauthorized")
    return file_obj


def list_user_files(db: Session, user_id: int) -> List[FileRecord]:
    return (
        db.query(FileRecord)
        .filter(FileRecord.user_id == user_id)
        .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
        .all()
    )


def get_storage_used_bytes(db: Session, user_id: int) -> int:
    total = (
        db.query(func.sum(FileRecord.size))
        .filter(FileRecord.user_id == user_id)
        .scalar()
    )
    return int(total or 0)


def delete_owned_file(db: Session, file_id: int, user_id: int) -> None:
    deleted = (
        db.query(FileRecord)
        .filter(FileRecord.id == file_id, FileRecord.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        raise HTTPException(status_code=404, detail="File not found or unauthorized")
    db.commit()
    logger.info("User %s deleted file %s", user_id, file_id)


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload one file into the current user's storage"
)
async def upload_file(
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        raise HTTPException(status_code=401, detail="Unauthorized - Please login to upload files")

    # read the form by hand so a text value in the "file" field is a 400, not a 422
    form = await request.form()
    file = form.get("file")
    if not isinstance(file, StarletteUploadFile):
        raise HTTPException(status_code=400, detail="No file provided")

    filename: str = file.filename or "unnamed"
    content_type: str = file.content_type or DEFAULT_MIME_TYPE

    # read one byte past the limit so oversized uploads are never fully buffered
    data = await file.read(MAX_FILE_SIZE + 1)
    if len(data) > MAX_FILE_SIZE:
        logger.warning("Rejected upload %r from user %s: over %d bytes", filename, current_user.id, MAX_FILE_SIZE)
        raise HTTPException(
            status_code=413,
            detail={
                "error": "File too large",
                "details": f"Maximum file size is {MAX_FILE_SIZE // (1024 * 1024)}MB",
            },
        )

    used = get_storage_used_bytes(db, current_user.id)
    if used + len(data) > MAX_STORAGE_SIZE:
        raise HTTPException(
            status_code=413,
            detail={
                "error": "Storage quota exceeded",
                "details": f"{MAX_STORAGE_SIZE - used} bytes remaining",
            },
        )

    new_file = FileRecord(
        name=filename,
        size=len(data),
        type=content_type,
        content=base64.b64encode(data).decode("ascii"),
        user_id=current_user.id,
        is_favorite=False,
    )
    try:
        db.add(new_file)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Upload of %r failed for user %s", filename, current_user.id)
        raise HTTPException(status_code=500, detail={"error": "Upload failed", "details": str(e)})

    # re-read the stored row so server defaults (created_at) are populated
    db.refresh(new_file)
    logger.info("User %s uploaded file %s (%d bytes, %s)", current_user.id, new_file.id, new_file.size, content_type)

    return UploadResponse(file=FileRecordOut.model_validate(new_file))


@router.get(
    "/files",
    response_model=List[FileRecordOut],
    summary="List the current user's files, newest first"
)
def list_files(
    q: Optional[str] = Query(default=None, description="Substring of the file name"),
    category: Optional[List[str]] = Query(default=None, description="documents, images, videos, audio, spreadsheets, others"),
    favorites: Optional[bool] = Query(default=None),
    date_range: str = Query(default="all"),
    min_size: Optional[int] = Query(default=None, ge=0),
    max_size: Optional[int] = Query(default=None, ge=0),
    sort: str = Query(default="created_at"),
    order: str = Query(default="desc", pattern="^(asc|desc)$"),
    include_content: bool = Query(default=True),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if sort not in SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"Unsupported sort field: {sort}")
    if date_range not in DATE_RANGES:
        raise HTTPException(status_code=400, detail=f"Unsupported date range: {date_range}")
    categories = None
    if category:
        unknown = [c for c in category if c not in PLURAL_TO_CATEGORY]
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown category: {unknown[0]}")
        categories = [PLURAL_TO_CATEGORY[c] for c in category]

    records = list_user_files(db, current_user.id)
    by_id = {r.id: r for r in records}

    items = [to_file_item(r, include_content=False) for r in records]
    items = search_files(items, q)
    items = filter_files(
        items,
        categories=categories,
        min_size=min_size,
        max_size=max_size,
        favorites=favorites,
        date_range=date_range,
    )
    items = sort_files(items, sort, order)

    result = []
    for item in items:
        out = FileRecordOut.model_validate(by_id[item.id])
        if not include_content:
            out.content = None
        result.append(out)
    return result


@router.delete("/files", summary="Delete a file by ?id=")
def delete_file_by_query(
    id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if id is None:
        raise HTTPException(status_code=400, detail="File ID is required")
    delete_owned_file(db, id, current_user.id)
    return {"success": True}


@router.delete("/files/{file_id}", summary="Delete a file")
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    delete_owned_file(db, file_id, current_user.id)
    return {"success": True}


@router.get("/files/{file_id}", response_model=FileItem)
def get_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return to_file_item(get_owned_file(db, file_id, current_user.id))


@router.get("/files/{file_id}/download", summary="Download the decoded file bytes")
def download_file(
    file_id: int,
    inline: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file_obj = get_owned_file(db, file_id, current_user.id)
    try:
        data = base64.b64decode(file_obj.content or "", validate=True)
    except (binascii.Error, ValueError):
        logger.error("File %s has a corrupt base64 payload", file_obj.id)
        raise HTTPException(status_code=500, detail="Stored file content is corrupt")

    disposition = "inline" if inline else "attachment"
    quoted = urllib.parse.quote(file_obj.name)
    return Response(
        content=data,
        media_type=file_obj.type or DEFAULT_MIME_TYPE,
        headers={"Content-Disposition": f"{disposition}; filename*=UTF-8''{quoted}"},
    )


@router.patch("/files/{file_id}/favorite", response_model=FileItem)
def set_favorite(
    file_id: int,
    req: FavoriteUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file_obj = get_owned_file(db, file_id, current_user.id)
    file_obj.is_favorite = req.is_favorite
    db.commit()
    db.refresh(file_obj)
    return to_file_item(file_obj)


@router.post("/files/{file_id}/favorite/toggle", response_model=FileItem)
def toggle_favorite(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file_obj = get_owned_file(db, file_id, current_user.id)
    file_obj.is_favorite = not bool(file_obj.is_favorite)
    db.commit()
    db.refresh(file_obj)
    return to_file_item(file_obj)


@router.patch("/files/{file_id}", response_model=FileItem)
def rename_file(
    file_id: int,
    req: RenameRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    new_name = (req.name or "").strip()
    if not new_name:
        raise HTTPException(status_code=400, detail="Invalid filename")

    file_obj = get_owned_file(db, file_id, current_user.id)
    file_obj.name = new_name
    db.commit()
    db.refresh(file_obj)
    return to_file_item(file_obj)
