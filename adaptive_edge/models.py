"""
Database models for the adaptive recommendation engine
SQLAlchemy ORM with PostgreSQL
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime, timezone
import os
from dotenv import load_dotenv

# Load .env before reading DATABASE_URL
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://postgres@127.0.0.1:5432/adaptive_edge")

engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class ModelConfig(Base):
    """Named JSON config records (one row per key, replaced on save)"""

    __tablename__ = "model_configs"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class ABTestAssignment(Base):
    """Sticky caller → variant assignment per experiment"""

    __tablename__ = "ab_test_assignments"
    __table_args__ = (
        UniqueConstraint("caller_id", "test_name", name="uq_ab_assignment_caller_test"),
    )

    id = Column(Integer, primary_key=True, index=True)
    caller_id = Column(String(100), nullable=False, index=True)
    test_name = Column(String(100), nullable=False, index=True)
    variant = Column(String(20), nullable=False)  # control | treatment

    assigned_at = Column(DateTime, default=_utcnow)


class ABTestResult(Base):
    """One graded outcome attributed to an experiment variant"""

    __tablename__ = "ab_test_results"

    id = Column(Integer, primary_key=True, index=True)
    test_name = Column(String(100), nullable=False, index=True)
    caller_id = Column(String(100), nullable=False)
    variant = Column(String(20), nullable=False, index=True)
    prediction_id = Column(String(100))
    ats_result = Column(Integer)  # 1 = cover, -1 = no cover, 0 = push
    net_units = Column(Float)

    created_at = Column(DateTime, default=_utcnow, index=True)


# Create all tables
def init_db():
    """Initialize database tables"""
    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created")


if __name__ == "__main__":
    init_db()
