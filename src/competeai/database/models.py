"""Database models for the CompeteAI competitive-intelligence platform."""

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship

# Fixed by the embedding model (text-embedding-3-small); changing it needs a migration
EMBEDDING_DIMENSIONS = 1536


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Company(Base):
    """Pharmaceutical company."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    headquarters = Column(String(255))
    therapy_areas = Column(JSON, default=list)  # ["Oncology", "Immunology", ...]
    website = Column(String(500))
    company_type = Column(String(50))  # "big_pharma", "biotech", ...

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    trials = relationship("Trial", back_populates="company")
    news_items = relationship("NewsItem", back_populates="company")


class Trial(Base):
    """Clinical trial from the registry."""

    __tablename__ = "trials"

    id = Column(String(20), primary_key=True)  # Registry ID, e.g. "NCT01234567"
    title = Column(Text, nullable=False)
    phase = Column(String(50))
    status = Column(String(50))
    conditions = Column(JSON, default=list)
    interventions = Column(JSON, default=list)
    sponsor_name = Column(String(500))
    brief_summary = Column(Text)
    study_type = Column(String(50))
    enrollment_count = Column(Integer)

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    company = relationship("Company", back_populates="trials")


class NewsItem(Base):
    """Industry news article."""

    __tablename__ = "news_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    summary = Column(Text)
    description = Column(Text)
    source = Column(String(255))
    category = Column(String(50))  # "clinical", "regulatory", "deal", ...
    source_url = Column(String(1000))
    published_date = Column(DateTime, nullable=False, index=True)

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    # Relationships
    company = relationship("Company", back_populates="news_items")


class Indication(Base):
    """Therapeutic indication."""

    __tablename__ = "indications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    category = Column(String(100))  # Therapeutic area
    description = Column(Text)
    total_reports = Column(Integer, default=0)
    total_trials = Column(Integer, default=0)


class Embedding(Base):
    """Embedding index entry; one row per (content_type, content_id)."""

    __tablename__ = "embeddings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    content_type = Column(String(20), nullable=False, index=True)  # trial, company, news, indication
    content_id = Column(String(255), nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("content_type", "content_id", name="uq_embedding_content"),
    )
