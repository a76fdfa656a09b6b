import itertools
import uuid

import pytest
from sqlalchemy import func, select

import matching_service
from errors import NotFoundError, ValidationError
from matching import MatchWeights
from matching import score_match as real_score_match
from matching_service import delete_matches, generate_matches, get_matches
from models import MatchResult, University


def cs_student(make_student, **overrides):
    profile = {
        "academic_level": "undergraduate",
        "gpa": 3.6,
        "desired_major": "Computer Science",
        "destination_country": "United States",
        "budget_range": {"min": 20000, "max": 45000},
        "test_scores": {"ielts": 7.0},
    }
    profile.update(overrides)
    return make_student(**profile)


def small_catalog(make_university) -> None:
    make_university(
        "State Tech",
        "United States",
        world_ranking=50,
        specialization="Computer Science, Engineering",
        tuition_fees={"international": {"min": 30000, "max": 40000}},
        acceptance_rate="60%",
        admission_requirements={"minimumGPA": "3.0"},
    )
    make_university(
        "Northern College",
        "Canada",
        world_ranking=120,
        specialization="Business, Law",
        tuition_fees={"international": {"min": 50000, "max": 70000}},
        acceptance_rate="35.00",
        admission_requirements={"minimumGPA": "3.4"},
    )
    make_university(
        "Elite Institute",
        "United Kingdom",
        world_ranking=3,
        specialization="Medicine",
        tuition_fees={"international": {"min": 90000, "max": 95000}},
        acceptance_rate="4%",
        admission_requirements={"minimumGPA": "3.9", "ieltsScore": "7.5"},
    )


def count_matches(db, user_id) -> int:
    return db.scalar(select(func.count()).select_from(MatchResult).where(MatchResult.user_id == user_id))


def test_generate_matches_returns_one_sorted_row_per_university(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)

    results = generate_matches(db, user.id)

    assert len(results) == 3
    scores = [match.score_value for match in results]
    assert scores == sorted(scores, reverse=True)
    assert results[0].university.name == "State Tech"
    assert all(0.0 <= score <= 1.0 for score in scores)
    assert all(len(match.match_score.split(".")[1]) == 2 for match in results)


def test_generate_matches_persists_reasoning_and_model_version(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)

    generate_matches(db, str(user.id), model_version="2.0.0-test")
    db.expire_all()
    stored = get_matches(db, user.id)

    assert {match.model_version for match in stored} == {"2.0.0-test"}
    top = stored[0]
    assert set(top.reasoning) == {"factors", "weights", "details"}
    assert "Perfect location match" in top.reasoning["factors"]
    assert top.reasoning["weights"]["budget"] == 0.25


def test_default_model_version_and_env_override(db, make_student, make_university, monkeypatch) -> None:
    user = cs_student(make_student)
    make_university("State Tech", "United States")

    assert generate_matches(db, user.id)[0].model_version == "1.0.0"

    monkeypatch.setenv("MATCH_MODEL_VERSION", "1.1.0")
    assert generate_matches(db, user.id)[0].model_version == "1.1.0"


def test_regenerating_updates_rows_in_place(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)

    first = generate_matches(db, user.id)
    second = generate_matches(db, user.id)

    assert count_matches(db, user.id) == 3
    assert {match.id for match in first} == {match.id for match in second}


def test_regenerating_after_profile_change_rescores(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    make_university("Northern College", "Canada", specialization="Business")

    before = generate_matches(db, user.id)[0].score_value
    user.student_profile.destination_country = "Canada"
    user.student_profile.desired_major = "Business"
    db.flush()
    after = generate_matches(db, user.id)[0].score_value

    assert after > before
    assert count_matches(db, user.id) == 1


def test_equal_scores_keep_catalog_order(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    make_university("Alpha University", "Germany", world_ranking=1)
    make_university("Beta University", "Germany", world_ranking=2)
    make_university("Gamma University", "United States", world_ranking=3, specialization="Computer Science")

    names = [match.university.name for match in generate_matches(db, user.id)]

    assert names == ["Gamma University", "Alpha University", "Beta University"]


def test_inactive_universities_are_not_scored(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    make_university("Open University", "United States")
    make_university("Closed University", "United States", active=False)

    results = generate_matches(db, user.id)

    assert [match.university.name for match in results] == ["Open University"]


def test_deactivated_university_drops_out_on_regenerate(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    assert len(generate_matches(db, user.id)) == 3

    elite = db.scalar(select(University).where(University.name == "Elite Institute"))
    elite.active = False
    db.flush()
    results = generate_matches(db, user.id)

    assert len(results) == 2
    assert count_matches(db, user.id) == 2
    assert "Elite Institute" not in [match.university.name for match in get_matches(db, user.id)]


def test_missing_profile_raises_not_found(db) -> None:
    user_id = uuid.uuid4()

    with pytest.raises(NotFoundError) as excinfo:
        generate_matches(db, user_id)

    assert "Student profile not found" in str(excinfo.value)
    assert str(user_id) in str(excinfo.value)


def test_invalid_user_id_is_rejected(db) -> None:
    with pytest.raises(ValidationError):
        generate_matches(db, "not-a-uuid")
    with pytest.raises(ValidationError):
        get_matches(db, "")


def test_empty_catalog_returns_empty_list(db, make_student) -> None:
    user = cs_student(make_student)

    assert generate_matches(db, user.id) == []


def test_get_matches_without_results_is_empty(db, make_student) -> None:
    user = cs_student(make_student)

    assert get_matches(db, user.id) == []
    assert get_matches(db, uuid.uuid4()) == []


def test_get_matches_is_ranked(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    generate_matches(db, user.id)

    stored = get_matches(db, user.id)

    assert len(stored) == 3
    scores = [match.score_value for match in stored]
    assert scores == sorted(scores, reverse=True)


def test_one_failing_university_is_skipped(db, make_student, make_university, monkeypatch) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)

    def flaky_score_match(student, university, weights):
        if university.name == "Northern College":
            raise ValueError("corrupt catalog row")
        return real_score_match(student, university, weights)

    monkeypatch.setattr(matching_service, "score_match", flaky_score_match)

    results = generate_matches(db, user.id)

    assert sorted(match.university.name for match in results) == ["Elite Institute", "State Tech"]
    assert count_matches(db, user.id) == 2


def test_failing_university_on_regenerate_leaves_no_stale_row(db, make_student, make_university, monkeypatch) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    generate_matches(db, user.id)
    assert count_matches(db, user.id) == 3

    def flaky_score_match(student, university, weights):
        if university.name == "Northern College":
            raise ValueError("corrupt catalog row")
        return real_score_match(student, university, weights)

    monkeypatch.setattr(matching_service, "score_match", flaky_score_match)
    results = generate_matches(db, user.id)

    assert count_matches(db, user.id) == len(results) == 2
    assert sorted(match.university.name for match in get_matches(db, user.id)) == ["Elite Institute", "State Tech"]


def test_deadline_returns_partial_results(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    ticks = itertools.count()

    results = generate_matches(db, user.id, deadline_seconds=1.5, clock=lambda: next(ticks))

    assert len(results) == 1
    assert count_matches(db, user.id) == 1


def test_deadline_after_full_run_keeps_only_scored_rows(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    generate_matches(db, user.id)
    ticks = itertools.count()

    results = generate_matches(db, user.id, deadline_seconds=1.5, clock=lambda: next(ticks))

    assert count_matches(db, user.id) == len(results) == 1
    assert [match.id for match in get_matches(db, user.id)] == [results[0].id]


def test_deadline_from_env(db, make_student, make_university, monkeypatch) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    monkeypatch.setenv("MATCH_DEADLINE_SECONDS", "0.5")
    ticks = itertools.count()

    assert generate_matches(db, user.id, clock=lambda: next(ticks)) == []


def test_custom_weights_change_ranking(db, make_student, make_university) -> None:
    user = cs_student(make_student, destination_country="Canada")
    make_university("Cheap Far Away", "Japan", tuition_fees={"international": {"min": 5000, "max": 8000}})
    make_university("Pricey Nearby", "Canada", tuition_fees={"international": {"min": 80000, "max": 90000}})

    location_first = MatchWeights(academic_fit=0.0, location=1.0, budget=0.0, program=0.0, admission=0.0)
    budget_first = MatchWeights(academic_fit=0.0, location=0.0, budget=1.0, program=0.0, admission=0.0)

    assert generate_matches(db, user.id, weights=location_first)[0].university.name == "Pricey Nearby"
    assert generate_matches(db, user.id, weights=budget_first)[0].university.name == "Cheap Far Away"


def test_delete_matches(db, make_student, make_university) -> None:
    user = cs_student(make_student)
    small_catalog(make_university)
    generate_matches(db, user.id)

    assert delete_matches(db, user.id) is True
    assert get_matches(db, user.id) == []
    assert delete_matches(db, user.id) is False


def test_delete_matches_logs_canonical_user_id(db, make_student, make_university, caplog) -> None:
    user = cs_student(make_student)
    make_university("State Tech", "United States")
    generate_matches(db, user.id)

    with caplog.at_level("INFO", logger="matching_service"):
        assert delete_matches(db, "{" + str(user.id).upper() + "}") is True

    assert f"Deleted stored matches for user {user.id}" in caplog.text
