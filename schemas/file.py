from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class FileRecordOut(BaseModel):
    """Row of the files table as the API returns it."""
    id: int
    name: str
    size: int
    type: str
    # omitted from listings when include_content=false
    content: Optional[str] = None
    user_id: int
    is_favorite: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    success: bool = True
    file: FileRecordOut


class FileItem(BaseModel):
    """View model: a file record with its data URL and category."""
    id: int
    name: str
    type: Literal["file"] = "file"
    mime_type: str
    size: int
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    is_favorite: bool = False
    url: Optional[str] = None
    thumbnail: Optional[str] = None
    category: str


class FavoriteUpdate(BaseModel):
    is_favorite: bool


class RenameRequest(BaseModel):
    name: Optional[str] = None


class CategoryStat(BaseModel):
    category: str
    count: int
    size: int


class StorageStats(BaseModel):
    used: int
    total: int
    percentage: float
    status: str
    used_display: str
    total_display: str
    file_types: List[CategoryStat] = Field(default_factory=list)


class DashboardResponse(BaseModel):
    storage: StorageStats
    total_files: int
    favorites_count: int
    category_counts: Dict[str, int] = Field(default_factory=dict)
    recent_files: List[FileItem] = Field(default_factory=list)


class ExportFile(BaseModel):
    name: str
    size: int
    category: str
    created_at: Optional[datetime] = None
    is_favorite: bool = False


class ExportCategory(BaseModel):
    name: str
    count: int
    size: int


class ExportSummary(BaseModel):
    total_files: int
    total_size: int
    categories: List[ExportCategory] = Field(default_factory=list)


class StorageExport(BaseModel):
    files: List[ExportFile] = Field(default_factory=list)
    summary: ExportSummary
    export_date: datetime


class CleanupSuggestions(BaseModel):
    large_files: List[FileItem] = Field(default_factory=list)
    old_files: List[FileItem] = Field(default_factory=list)
