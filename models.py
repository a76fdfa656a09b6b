from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")  # student | counselor | admin
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    student_profile = relationship("StudentProfile", back_populates="user", uselist=False)

    __table_args__ = (
        CheckConstraint("role in ('student', 'counselor', 'admin')", name="ck_users_role"),
    )


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    academic_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # high_school | undergraduate | postgraduate
    gpa: Mapped[Optional[float]] = mapped_column(Numeric(5, 2), nullable=True)
    desired_major: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    destination_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    preferred_countries: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    budget_range: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # {"min": int, "max": int}
    test_scores: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)  # ielts, toefl, sat, act, gre, gmat
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="student_profile")


class University(Base):
    __tablename__ = "universities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    specialization: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # comma-delimited fields
    tuition_fees: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    acceptance_rate: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # "30%" or "30.00"
    admission_requirements: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    world_ranking: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_universities_country", "country"),
        Index("ix_universities_name_country", "name", "country", unique=True),
    )


class MatchResult(Base):
    __tablename__ = "ai_matching_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    university_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("universities.id", ondelete="CASCADE"), nullable=False)
    match_score: Mapped[str] = mapped_column(String(8), nullable=False)  # "0.00" - "1.00"
    reasoning: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    model_version: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    university = relationship("University")

    __table_args__ = (
        UniqueConstraint("user_id", "university_id", name="uq_ai_matching_results_user_university"),
        Index("ix_ai_matching_results_user_id", "user_id"),
    )

    @property
    def score_value(self) -> float:
        return float(self.match_score or 0)
