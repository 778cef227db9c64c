# database/models/collection_model.py
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from database.models.document_model import document_collections


class Collection(Base):
    __tablename__ = "collections"

    id = Column(String, primary_key=True, index=True) # UUID
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(String, ForeignKey("collections.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="collections")
    parent = relationship("Collection", remote_side=[id], back_populates="children")
    children = relationship("Collection", back_populates="parent", cascade="all, delete-orphan")
    documents = relationship("Document", secondary=document_collections, back_populates="collections")
