from sqlalchemy.orm import relationship
from sqlalchemy import Column, Integer, BigInteger, String, Text, Boolean, ForeignKey, TIMESTAMP, false, text
from sqlalchemy.dialects.mysql import LONGTEXT
from .base import Base

class FileRecord(Base):
    __tablename__ = 'files'

    id          = Column(Integer, primary_key=True, autoincrement=True)
    name        = Column(String(255), nullable=False)
    size        = Column(BigInteger, nullable=False, default=0)
    type        = Column(String(255), nullable=False, default="application/octet-stream")
    # base64 payload; TEXT caps at 64KB on MySQL
    content     = Column(Text().with_variant(LONGTEXT, "mysql"), nullable=False)
    user_id     = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    is_favorite = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at  = Column(TIMESTAMP, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at  = Column(TIMESTAMP, nullable=False,
                         server_default=text('CURRENT_TIMESTAMP'),
                         onupdate=text('CURRENT_TIMESTAMP'))

    user = relationship("User", back_populates="files")
