from __future__ import annotations

import csv
import io
import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models import StudentProfile, University, User

logger = logging.getLogger(__name__)

REQUIRED_UNIVERSITY_COLUMNS = {"name", "country"}

CSV_HEADERS = [
    "name",
    "country",
    "city",
    "website",
    "worldRanking",
    "specialization",
    "minimumGPA",
    "ieltsScore",
    "gmatScore",
    "tuitionInternationalMin",
    "tuitionInternationalMax",
    "tuitionDomesticMin",
    "tuitionDomesticMax",
    "acceptanceRate",
    "description",
]

EMPTY_MARKERS = {"", "n/a", "na", "undefined", "null"}


def _normalize_header(value: str) -> str:
    return "".join((value or "").split()).lower()


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return None if value.lower() in EMPTY_MARKERS else value


def _parse_int(value: str | None) -> int | None:
    value = _clean(value)
    if value is None:
        return None
    return int(float(value.replace(",", "")))


def _parse_float(value: str | None) -> float | None:
    value = _clean(value)
    return float(value.replace(",", "")) if value is not None else None


def _fee_band(low: str | None, high: str | None) -> dict[str, float] | None:
    low_value = _parse_float(low)
    high_value = _parse_float(high)
    if low_value is None and high_value is None:
        return None
    return {
        "min": low_value if low_value is not None else high_value,
        "max": high_value if high_value is not None else low_value,
    }


def csv_row_to_university(row: dict[str, str]) -> dict[str, Any]:
    name = _clean(row.get("name"))
    country = _clean(row.get("country"))
    if not name or not country:
        raise ValueError("name and country are required")

    tuition_fees: dict[str, Any] = {}
    international = _fee_band(row.get("tuitioninternationalmin"), row.get("tuitioninternationalmax"))
    domestic = _fee_band(row.get("tuitiondomesticmin"), row.get("tuitiondomesticmax"))
    if international:
        tuition_fees["international"] = international
    if domestic:
        tuition_fees["domestic"] = domestic

    requirements = {
        "minimumGPA": _clean(row.get("minimumgpa")),
        "ieltsScore": _clean(row.get("ieltsscore")),
        "gmatScore": _clean(row.get("gmatscore")),
    }
    requirements = {key: value for key, value in requirements.items() if value is not None}

    return {
        "name": name,
        "country": country,
        "city": _clean(row.get("city")),
        "website": _clean(row.get("website")),
        "world_ranking": _parse_int(row.get("worldranking")),
        "specialization": _clean(row.get("specialization")),
        "tuition_fees": tuition_fees or None,
        "acceptance_rate": _clean(row.get("acceptancerate")),
        "admission_requirements": requirements or None,
        "description": _clean(row.get("description")),
    }


def load_universities_from_csv(csv_text: str) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Parse a catalog CSV into university rows.

    Returns ``(rows, errors)``. Bad data rows are collected in ``errors`` with
    their 1-based line number instead of aborting the import.
    """
    reader = csv.DictReader(io.StringIO(csv_text.strip()))
    headers = [_normalize_header(name) for name in (reader.fieldnames or [])]
    missing = sorted(REQUIRED_UNIVERSITY_COLUMNS - set(headers))
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    rows: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    for line_number, raw in enumerate(reader, start=2):
        normalized = {_normalize_header(key): value for key, value in raw.items() if key is not None}
        try:
            rows.append(csv_row_to_university(normalized))
        except ValueError as exc:
            errors.append({"row": line_number, "error": str(exc), "data": raw})

    if not rows and not errors:
        raise ValueError("CSV must contain at least a header row and one data row")
    return rows, errors


def upsert_universities(db: Session, rows: list[dict[str, Any]]) -> dict[str, int]:
    inserted = 0
    updated = 0
    for row in rows:
        existing = db.scalar(
            select(University).where(University.name == row["name"], University.country == row["country"])
        )
        if existing:
            for key, value in row.items():
                setattr(existing, key, value)
            updated += 1
        else:
            db.add(University(**row))
            inserted += 1
        db.flush()

    logger.info("University catalog upsert: %d inserted, %d updated", inserted, updated)
    return {"inserted": inserted, "updated": updated}


def import_universities_csv(db: Session, csv_text: str) -> dict[str, Any]:
    rows, errors = load_universities_from_csv(csv_text)
    result = upsert_universities(db, rows)
    if errors:
        logger.warning("University catalog import skipped %d row(s)", len(errors))
    return {**result, "failed": len(errors), "errors": errors}


def generate_sample_csv() -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerow(
        [
            "Harvard University",
            "United States",
            "Cambridge",
            "https://harvard.edu",
            "4",
            "Business, Law, Medicine",
            "3.8",
            "7.0",
            "700",
            "54000",
            "57000",
            "",
            "",
            "4%",
            "Ivy League research university",
        ]
    )
    writer.writerow(
        [
            "University of Toronto",
            "Canada",
            "Toronto",
            "https://utoronto.ca",
            "21",
            "Computer Science, Engineering, Life Sciences",
            "3.3",
            "6.5",
            "n/a",
            "45000",
            "60000",
            "6100",
            "14000",
            "43",
            "Large public research university",
        ]
    )
    return buffer.getvalue()


def sample_universities() -> list[dict[str, Any]]:
    return [
        {
            "name": "Massachusetts Institute of Technology",
            "country": "United States",
            "city": "Cambridge",
            "website": "https://mit.edu",
            "world_ranking": 1,
            "specialization": "Computer Science, Engineering, Physics, Mathematics",
            "tuition_fees": {"international": {"min": 57000, "max": 61000}, "domestic": {"min": 57000, "max": 61000}},
            "acceptance_rate": "4%",
            "admission_requirements": {"minimumGPA": "3.9", "ieltsScore": "7.0"},
        },
        {
            "name": "Arizona State University",
            "country": "United States",
            "city": "Tempe",
            "website": "https://asu.edu",
            "world_ranking": 179,
            "specialization": "Computer Science, Business, Engineering, Sustainability",
            "tuition_fees": {"international": {"min": 31000, "max": 36000}, "domestic": {"min": 11000, "max": 13000}},
            "acceptance_rate": "88%",
            "admission_requirements": {"minimumGPA": "3.0", "ieltsScore": "6.0"},
        },
        {
            "name": "University of Toronto",
            "country": "Canada",
            "city": "Toronto",
            "website": "https://utoronto.ca",
            "world_ranking": 21,
            "specialization": "Computer Science, Engineering, Life Sciences",
            "tuition_fees": {"international": {"min": 45000, "max": 60000}, "domestic": {"min": 6100, "max": 14000}},
            "acceptance_rate": "43",
            "admission_requirements": {"minimumGPA": "3.3", "ieltsScore": "6.5"},
        },
        {
            "name": "University of Manchester",
            "country": "United Kingdom",
            "city": "Manchester",
            "website": "https://manchester.ac.uk",
            "world_ranking": 34,
            "specialization": "Business, Engineering, Medicine, Computer Science",
            "tuition_fees": {"international": {"min": 26000, "max": 34000}},
            "acceptance_rate": "56%",
            "admission_requirements": {"minimumGPA": "3.2", "ieltsScore": "6.5"},
        },
        {
            "name": "Technical University of Munich",
            "country": "Germany",
            "city": "Munich",
            "website": "https://tum.de",
            "world_ranking": 37,
            "specialization": "Engineering, Computer Science, Natural Sciences",
            "tuition_fees": {"international": {"min": 4000, "max": 6000}},
            "acceptance_rate": "8%",
            "admission_requirements": {"minimumGPA": "3.5", "ieltsScore": "6.5"},
        },
        {
            "name": "University of Melbourne",
            "country": "Australia",
            "city": "Melbourne",
            "website": "https://unimelb.edu.au",
            "world_ranking": 14,
            "specialization": "Medicine, Law, Arts, Business",
            "tuition_fees": {"international": {"min": 32000, "max": 48000}},
            "acceptance_rate": "70%",
            "admission_requirements": {"minimumGPA": "3.0", "ieltsScore": "6.5"},
        },
        {
            "name": "National University of Singapore",
            "country": "Singapore",
            "city": "Singapore",
            "website": "https://nus.edu.sg",
            "world_ranking": 8,
            "specialization": "Computer Science, Business, Engineering, Medicine",
            "tuition_fees": {"international": {"min": 29000, "max": 38000}},
            "acceptance_rate": "5%",
            "admission_requirements": {"minimumGPA": "3.7", "ieltsScore": "6.5"},
        },
    ]


def seed_universities_if_empty(db: Session) -> dict[str, int]:
    total = db.scalar(select(func.count()).select_from(University))
    if total and total > 0:
        return {"inserted": 0, "updated": 0}
    return upsert_universities(db, sample_universities())


def seed_demo_student(db: Session, email: str = "student@demo.local") -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user:
        return user

    user = User(role="student", email=email)
    db.add(user)
    db.flush()
    db.add(
        StudentProfile(
            user_id=user.id,
            academic_level="undergraduate",
            gpa=3.6,
            desired_major="Computer Science",
            destination_country="United States",
            preferred_countries=["Canada", "United Kingdom"],
            budget_range={"min": 20000, "max": 45000},
            test_scores={"ielts": 7.0},
        )
    )
    db.flush()
    return user
