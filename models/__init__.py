from .base import Base
from .user import User
from .file import FileRecord

__all__ = ["Base", "User", "FileRecord"]
