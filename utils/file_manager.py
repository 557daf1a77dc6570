"""
File manager helpers.

Turns stored file rows into FileItem view models and answers the browsing
questions the dashboard asks: category, search, filter, sort, storage use,
cleanup suggestions and the metadata export.
Everything here is a pure function over lists, so routers load the user's
rows once and pass them in.
"""

from __future__ import annotations

import math
import os
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from models.file import FileRecord
from schemas.file import (
    CategoryStat, CleanupSuggestions, ExportCategory, ExportFile, ExportSummary, FileItem, StorageExport,
    StorageStats,
)

DEFAULT_MIME_TYPE = "application/octet-stream"
MAX_STORAGE_SIZE = int(os.getenv("MAX_STORAGE_SIZE", str(5 * 1024 * 1024 * 1024)))  # 5GB

# singular category -> plural name used by listing routes
CATEGORY_NAMES = {
    "document": "documents",
    "image": "images",
    "video": "videos",
    "audio": "audio",
    "spreadsheet": "spreadsheets",
    "other": "others",
}
PLURAL_TO_CATEGORY = {v: k for k, v in CATEGORY_NAMES.items()}

SORT_FIELDS = ("name", "size", "created_at", "modified_at")
DATE_RANGES = ("all", "today", "week", "month", "year")
SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]

LARGE_FILE_SIZE = 10 * 1024 * 1024  # 10MB
OLD_FILE_MONTHS = 6


def get_file_category(mime_type: Optional[str]) -> str:
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("audio/"):
        return "audio"
    if "spreadsheet" in mime_type or "excel" in mime_type or "csv" in mime_type:
        return "spreadsheet"
    if (
        "document" in mime_type
        or "pdf" in mime_type
        or "text" in mime_type
        or "presentation" in mime_type
    ):
        return "document"
    return "other"


def to_data_url(mime_type: Optional[str], content: str) -> str:
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{content}"


def to_file_item(record: FileRecord, include_content: bool = True) -> FileItem:
    """Build the FileItem view of a stored row.

    With include_content=False the data URLs are left empty so that
    listings stay small.
    """
    mime_type = record.type or DEFAULT_MIME_TYPE
    category = get_file_category(mime_type)
    url = to_data_url(mime_type, record.content or "") if include_content else None
    return FileItem(
        id=record.id,
        name=record.name,
        mime_type=mime_type,
        size=record.size or 0,
        created_at=record.created_at,
        modified_at=record.updated_at or record.created_at,
        is_favorite=bool(record.is_favorite),
        url=url,
        thumbnail=url if category == "image" else None,
        category=category,
    )


def search_files(items: Sequence[FileItem], query: Optional[str]) -> List[FileItem]:
    if not query or not query.strip():
        return list(items)
    term = query.strip().lower()
    return [f for f in items if term in f.name.lower()]


def get_files_by_category(items: Sequence[FileItem], category: str) -> List[FileItem]:
    """Files in a plural category ("documents", "images", ...) or "favorites".

    Unknown names give an empty list.
    """
    if category == "favorites":
        return [f for f in items if f.is_favorite]
    singular = PLURAL_TO_CATEGORY.get(category)
    if singular is None:
        return []
    return [f for f in items if f.category == singular]


def _utcnow() -> datetime:
    # stored timestamps are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _date_range_start(date_range: str, now: datetime) -> Optional[datetime]:
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "today":
        return today
    if date_range == "week":
        return today - timedelta(days=today.weekday())
    if date_range == "month":
        return today.replace(day=1)
    if date_range == "year":
        return today.replace(month=1, day=1)
    return None


def filter_files(
    items: Sequence[FileItem],
    categories: Optional[Iterable[str]] = None,
    min_size: Optional[int] = None,
    max_size: Optional[int] = None,
    favorites: Optional[bool] = None,
    date_range: str = "all",
    now: Optional[datetime] = None,
) -> List[FileItem]:
    """Narrow a list by category set, size bounds (inclusive), favorite flag
    and upload date range. None / "all" means no constraint."""
    wanted = set(categories or ())
    start = _date_range_start(date_range, now or _utcnow())

    result = []
    for f in items:
        if wanted and f.category not in wanted:
            continue
        if min_size is not None and f.size < min_size:
            continue
        if max_size is not None and f.size > max_size:
            continue
        if favorites is not None and f.is_favorite != favorites:
            continue
        if start is not None and (f.created_at is None or f.created_at < start):
            continue
        result.append(f)
    return result


def sort_files(items: Sequence[FileItem], field: str = "created_at", direction: str = "desc") -> List[FileItem]:
    if field not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field: {field}")
    reverse = direction == "desc"

    if field == "name":
        key = lambda f: f.name.lower()
    elif field == "size":
        key = lambda f: f.size
    else:
        # missing timestamps sort as oldest
        key = lambda f: (getattr(f, field) or datetime.min, f.id)
    return sorted(items, key=key, reverse=reverse)


def get_total_size(items: Iterable[FileItem]) -> int:
    return sum(f.size for f in items)


def get_storage_used(items: Iterable[FileItem], total: int = MAX_STORAGE_SIZE) -> dict:
    used = get_total_size(items)
    percentage = (used / total) * 100 if total else 0.0
    return {"used": used, "total": total, "percentage": percentage}


def get_storage_status(percentage: float) -> str:
    if percentage < 50:
        return "good"
    if percentage < 80:
        return "moderate"
    return "full"


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    i = 0
    while size >= math.pow(1024, i + 1) and i < len(SIZE_UNITS) - 1:
        i += 1
    value = round(size / math.pow(1024, i), 2)
    # 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def get_storage_stats(items: Sequence[FileItem], total: int = MAX_STORAGE_SIZE) -> StorageStats:
    usage = get_storage_used(items, total)

    breakdown: List[CategoryStat] = []
    for singular, plural in CATEGORY_NAMES.items():
        members = [f for f in items if f.category == singular]
        if members:
            breakdown.append(CategoryStat(category=plural, count=len(members), size=get_total_size(members)))

    return StorageStats(
        used=usage["used"],
        total=usage["total"],
        percentage=usage["percentage"],
        status=get_storage_status(usage["percentage"]),
        used_display=format_file_size(usage["used"]),
        total_display=format_file_size(usage["total"]),
        file_types=breakdown,
    )


def quick_search(items: Sequence[FileItem], query: str, filter_name: str = "all",
                 now: Optional[datetime] = None) -> List[FileItem]:
    """Search box behaviour: match name or MIME type, apply one quick filter,
    then rank name matches first and newest first within each group."""
    term = (query or "").strip().lower()
    if not term:
        return []

    matched = [f for f in items if term in f.name.lower() or term in f.mime_type.lower()]

    if filter_name == "recent":
        week_ago = (now or _utcnow()) - timedelta(days=7)
        matched = [f for f in matched if f.created_at is not None and f.created_at > week_ago]
    elif filter_name != "all":
        matched = get_files_by_category(matched, filter_name)

    newest_first = sort_files(matched, "created_at", "desc")
    # stable sort keeps the newest-first order inside each group
    return sorted(newest_first, key=lambda f: term not in f.name.lower())


def _months_ago(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # clamp e.g. 31 August -> 28/29 February
    next_month = datetime(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return now.replace(year=year, month=month, day=min(now.day, last_day))


def find_cleanup_candidates(items: Sequence[FileItem], now: Optional[datetime] = None,
                            large_size: int = LARGE_FILE_SIZE,
                            months: int = OLD_FILE_MONTHS) -> CleanupSuggestions:
    """Files worth cleaning up: anything over large_size bytes, and anything
    uploaded more than `months` months ago. A file can be in both lists."""
    cutoff = _months_ago(now or _utcnow(), months)
    return CleanupSuggestions(
        large_files=[f for f in items if f.size > large_size],
        old_files=[f for f in items if f.created_at is not None and f.created_at < cutoff],
    )


def build_storage_export(items: Sequence[FileItem], now: Optional[datetime] = None) -> StorageExport:
    """Backup of the user's file metadata, with per-category totals.

    Every category is listed, empty ones included.
    """
    categories = []
    for singular, plural in CATEGORY_NAMES.items():
        members = [f for f in items if f.category == singular]
        categories.append(ExportCategory(name=plural, count=len(members), size=get_total_size(members)))

    return StorageExport(
        files=[
            ExportFile(
                name=f.name,
                size=f.size,
                category=f.category,
                created_at=f.created_at,
                is_favorite=f.is_favorite,
            )
            for f in items
        ],
        summary=ExportSummary(
            total_files=len(items),
            total_size=get_total_size(items),
            categories=categories,
        ),
        export_date=now or _utcnow(),
    )
