# routers/dashboard.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from db import get_db
from models.user import User
from routers.file import list_user_files
from schemas.file import CleanupSuggestions, DashboardResponse, FileItem, StorageExport, StorageStats
from utils.jwt_utils import get_current_user
from utils.file_manager import (
    CATEGORY_NAMES,
    PLURAL_TO_CATEGORY,
    to_file_item,
    get_files_by_category,
    get_storage_stats,
    find_cleanup_candidates,
    build_storage_export,
    quick_search,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

RECENT_FILES_LIMIT = 5
SEARCH_FILTERS = {"all", "recent", "favorites"} | set(PLURAL_TO_CATEGORY)


def load_items(db: Session, user: User, include_content: bool = True) -> List[FileItem]:
    return [to_file_item(r, include_content) for r in list_user_files(db, user.id)]


@router.get("", response_model=DashboardResponse, summary="Overview: storage, counts and recent uploads")
def dashboard(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    items = load_items(db, user)
    return DashboardResponse(
        storage=get_storage_stats(items),
        total_files=len(items),
        favorites_count=sum(1 for f in items if f.is_favorite),
        category_counts={
            plural: len(get_files_by_category(items, plural))
            for plural in CATEGORY_NAMES.values()
        },
        recent_files=items[:RECENT_FILES_LIMIT],
    )


@router.get("/storage", response_model=StorageStats, summary="Storage use and per-category breakdown")
def storage(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return get_storage_stats(load_items(db, user, include_content=False))


@router.get("/storage/export", response_model=StorageExport, summary="Download a JSON backup of file metadata")
def export_storage(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    export = build_storage_export(load_items(db, user, include_content=False))
    filename = f"zipflow-export-{export.export_date.date().isoformat()}.json"
    logger.info("User %s exported %d file records", user.id, export.summary.total_files)
    return JSONResponse(
        content=export.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/storage/cleanup", response_model=CleanupSuggestions, summary="Large and old files worth removing")
def cleanup_suggestions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return find_cleanup_candidates(load_items(db, user, include_content=False))


@router.get("/categories/{category}", response_model=List[FileItem], summary="Files of one category, or favorites")
def category_files(
    category: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if category != "favorites" and category not in PLURAL_TO_CATEGORY:
        raise HTTPException(status_code=404, detail="Unknown category")
    return get_files_by_category(load_items(db, user), category)


@router.get("/search", response_model=List[FileItem], summary="Search box: name or MIME type match")
def search(
    q: str = Query(default=""),
    filter: str = Query(default="all"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if filter not in SEARCH_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unsupported filter: {filter}")
    return quick_search(load_items(db, user), q, filter)
