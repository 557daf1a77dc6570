# schemas/__init__.py

from .user import (
    RegisterRequest, RegisterResponse,
    LoginRequest,    LoginResponse,
    SessionResponse, UserOut,
)

from .file import (
    FileRecordOut,
    UploadResponse,
    FileItem,
    FavoriteUpdate,
    RenameRequest,
    CategoryStat,
    StorageStats,
    DashboardResponse,
    ExportFile,
    ExportCategory,
    ExportSummary,
    StorageExport,
    CleanupSuggestions,
)
