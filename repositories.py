from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Float, cast, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import NotFoundError, handle_database_error
from models import MatchResult, StudentProfile, University

MATCH_FIELDS = {"match_score", "reasoning", "model_version"}


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class StudentRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_user_id(self, user_id: str | uuid.UUID) -> Optional[StudentProfile]:
        try:
            return self.db.scalar(select(StudentProfile).where(StudentProfile.user_id == _as_uuid(user_id)).limit(1))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "StudentRepository.find_by_user_id")


class UniversityRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, university_id: str | uuid.UUID) -> Optional[University]:
        try:
            return self.db.get(University, _as_uuid(university_id))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "UniversityRepository.find_by_id")

    def find_all(self, active_only: bool = True) -> list[University]:
        stmt = select(University)
        if active_only:
            stmt = stmt.where(University.active.is_(True))
        stmt = stmt.order_by(University.world_ranking.is_(None), University.world_ranking, University.name)
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            handle_database_error(exc, "UniversityRepository.find_all")


class MatchRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, match_id: str | uuid.UUID) -> Optional[MatchResult]:
        try:
            return self.db.get(MatchResult, _as_uuid(match_id))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.find_by_id")

    def find_by_user(self, user_id: str | uuid.UUID) -> list[MatchResult]:
        stmt = (
            select(MatchResult)
            .where(MatchResult.user_id == _as_uuid(user_id))
            .order_by(cast(MatchResult.match_score, Float).desc(), MatchResult.created_at)
        )
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.find_by_user")

    def find_by_user_and_university(
        self, user_id: str | uuid.UUID, university_id: str | uuid.UUID
    ) -> Optional[MatchResult]:
        stmt = select(MatchResult).where(
            MatchResult.user_id == _as_uuid(user_id),
            MatchResult.university_id == _as_uuid(university_id),
        )
        try:
            return self.db.scalar(stmt.limit(1))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.find_by_user_and_university")

    def find_all(
        self,
        user_id: str | uuid.UUID | None = None,
        university_id: str | uuid.UUID | None = None,
        min_score: float | None = None,
        max_score: float | None = None,
    ) -> list[MatchResult]:
        score = cast(MatchResult.match_score, Float)
        stmt = select(MatchResult)
        if user_id is not None:
            stmt = stmt.where(MatchResult.user_id == _as_uuid(user_id))
        if university_id is not None:
            stmt = stmt.where(MatchResult.university_id == _as_uuid(university_id))
        if min_score is not None:
            stmt = stmt.where(score >= min_score)
        if max_score is not None:
            stmt = stmt.where(score <= max_score)
        try:
            return list(self.db.scalars(stmt.order_by(MatchResult.created_at.desc())).all())
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.find_all")

    def create(self, data: dict[str, Any]) -> MatchResult:
        match = MatchResult(**data)
        try:
            self.db.add(match)
            self.db.flush()
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.create")
        return match

    def update(self, match_id: str | uuid.UUID, data: dict[str, Any]) -> MatchResult:
        match = self.find_by_id(match_id)
        if match is None:
            raise NotFoundError("Match result", str(match_id))
        for key, value in data.items():
            if key in MATCH_FIELDS:
                setattr(match, key, value)
        match.updated_at = datetime.now(timezone.utc)
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.update")
        return match

    def upsert(
        self, user_id: str | uuid.UUID, university_id: str | uuid.UUID, data: dict[str, Any]
    ) -> tuple[MatchResult, bool]:
        """Insert or update the match for one (user, university) pair.

        Returns the row and whether it was newly created. A concurrent insert
        of the same pair trips the unique constraint inside the savepoint and
        is retried as an update.
        """
        existing = self.find_by_user_and_university(user_id, university_id)
        if existing is not None:
            return self.update(existing.id, data), False

        fields = {key: value for key, value in data.items() if key in MATCH_FIELDS}
        match = MatchResult(user_id=_as_uuid(user_id), university_id=_as_uuid(university_id), **fields)
        try:
            with self.db.begin_nested():
                self.db.add(match)
        except IntegrityError:
            existing = self.find_by_user_and_university(user_id, university_id)
            if existing is None:
                raise
            return self.update(existing.id, data), False
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.upsert")
        return match, True

    def delete(self, match_id: str | uuid.UUID) -> bool:
        try:
            result = self.db.execute(delete(MatchResult).where(MatchResult.id == _as_uuid(match_id)))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.delete")
        return (result.rowcount or 0) > 0

    def delete_by_user_except(self, user_id: str | uuid.UUID, university_ids: list[uuid.UUID]) -> int:
        """Remove the user's matches for every university not in ``university_ids``."""
        stmt = delete(MatchResult).where(MatchResult.user_id == _as_uuid(user_id))
        if university_ids:
            stmt = stmt.where(MatchResult.university_id.not_in([_as_uuid(item) for item in university_ids]))
        try:
            result = self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.delete_by_user_except")
        return result.rowcount or 0

    def delete_by_user(self, user_id: str | uuid.UUID) -> bool:
        try:
            result = self.db.execute(delete(MatchResult).where(MatchResult.user_id == _as_uuid(user_id)))
        except SQLAlchemyError as exc:
            handle_database_error(exc, "MatchRepository.delete_by_user")
        return (result.rowcount or 0) > 0
