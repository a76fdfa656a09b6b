"""Generate, read and clear university matches for one student.

The scoring itself lives in :mod:`matching`; this module loads the student
profile and the catalog, persists one row per (user, university) pair and
returns the rows ranked by score.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from sqlalchemy.orm import Session

import config
from errors import NotFoundError, ValidationError
from matching import MatchWeights, format_match_score, score_match
from models import MatchResult
from repositories import MatchRepository, StudentRepository, UniversityRepository

logger = logging.getLogger(__name__)


def _validate_user_id(user_id: str | uuid.UUID) -> uuid.UUID:
    try:
        return user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("Match request", {"user_id": f"Invalid UUID: {user_id!r}"}) from None


def _sorted_by_score(matches: list[MatchResult]) -> list[MatchResult]:
    # sorted() is stable, so equal scores keep catalog order.
    return sorted(matches, key=lambda match: match.score_value, reverse=True)


def generate_matches(
    db: Session,
    user_id: str | uuid.UUID,
    *,
    weights: MatchWeights | None = None,
    model_version: str | None = None,
    deadline_seconds: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> list[MatchResult]:
    user_uuid = _validate_user_id(user_id)
    weights = weights or config.get_match_weights()
    model_version = model_version or config.get_model_version()
    if deadline_seconds is None:
        deadline_seconds = config.get_deadline_seconds()

    profile = StudentRepository(db).find_by_user_id(user_uuid)
    if profile is None:
        raise NotFoundError("Student profile", str(user_uuid))

    universities = UniversityRepository(db).find_all()
    matches_repo = MatchRepository(db)
    logger.info("Generating matches for user %s against %d universities", user_uuid, len(universities))

    started = clock()
    results: list[MatchResult] = []
    created = 0
    skipped = 0
    for index, university in enumerate(universities):
        if deadline_seconds is not None and clock() - started > deadline_seconds:
            logger.warning(
                "Match deadline of %.1fs reached for user %s; returning %d of %d universities",
                deadline_seconds,
                user_uuid,
                len(results),
                len(universities),
            )
            break

        try:
            scored = score_match(profile, university, weights)
        except Exception:
            skipped += 1
            logger.warning("Skipping university %s (%s) for user %s", university.id, university.name, user_uuid, exc_info=True)
            continue

        match, is_new = matches_repo.upsert(
            user_uuid,
            university.id,
            {
                "match_score": format_match_score(scored["match_score"]),
                "reasoning": scored["reasoning"],
                "model_version": model_version,
            },
        )
        created += int(is_new)
        results.append(match)

    # Rows for universities not scored in this run are stale.
    removed = matches_repo.delete_by_user_except(user_uuid, [match.university_id for match in results])

    logger.info(
        "Matches for user %s: %d created, %d updated, %d skipped, %d stale removed",
        user_uuid,
        created,
        len(results) - created,
        skipped,
        removed,
    )
    return _sorted_by_score(results)


def get_matches(db: Session, user_id: str | uuid.UUID) -> list[MatchResult]:
    return MatchRepository(db).find_by_user(_validate_user_id(user_id))


def delete_matches(db: Session, user_id: str | uuid.UUID) -> bool:
    user_uuid = _validate_user_id(user_id)
    deleted = MatchRepository(db).delete_by_user(user_uuid)
    if deleted:
        logger.info("Deleted stored matches for user %s", user_uuid)
    return deleted
