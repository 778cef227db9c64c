# database/models/document_model.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, JSON, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from database.db import Base


document_collections = Table(
    "document_collections",
    Base.metadata,
    Column("document_id", String, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True),
    Column("collection_id", String, ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True),
)


class Document(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True, index=True) # UUID
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Bibliographic metadata
    title = Column(Text, nullable=False)
    authors = Column(JSON, nullable=True)
    year = Column(Integer, nullable=True)
    publication_type = Column(Text, nullable=True)
    journal = Column(Text, nullable=True)
    volume = Column(Text, nullable=True)
    issue = Column(Text, nullable=True)
    pages = Column(Text, nullable=True)
    publisher = Column(Text, nullable=True)
    doi = Column(Text, nullable=True, index=True)
    url = Column(Text, nullable=True)
    abstract_text = Column(Text, nullable=True)
    keywords = Column(JSON, nullable=True)

    # Stored upload path
    pdf_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="documents")
    collections = relationship("Collection", secondary=document_collections, back_populates="documents")
