from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_match_weights
from db import db_session
from matching import score_match
from repositories import UniversityRepository


def fetch_universities() -> list[Any]:
    with db_session() as db:
        return UniversityRepository(db).find_all()


def scenario_inputs() -> list[dict[str, Any]]:
    return [
        {
            "name": "Strong CS applicant, US focus",
            "gpa": 3.9,
            "desired_major": "Computer Science",
            "destination_country": "United States",
            "budget_range": {"min": 30000, "max": 65000},
            "test_scores": {"ielts": 7.5},
        },
        {
            "name": "Budget-limited engineering, open destination",
            "gpa": 3.2,
            "desired_major": "Engineering",
            "destination_country": None,
            "budget_range": {"min": 3000, "max": 15000},
            "test_scores": {"ielts": 6.5},
        },
        {
            "name": "Business, UK first, Canada second",
            "gpa": 3.4,
            "desired_major": "Business",
            "destination_country": "UK",
            "preferred_countries": ["Canada"],
            "budget_range": {"min": 20000, "max": 40000},
            "test_scores": {"ielts": 6.5},
        },
        {
            "name": "Medicine, below typical GPA",
            "gpa": 2.6,
            "desired_major": "Medicine",
            "destination_country": "Australia",
            "budget_range": {"min": 25000, "max": 50000},
            "test_scores": None,
        },
        {
            "name": "Empty profile",
        },
    ]


def main() -> None:
    universities = fetch_universities()
    weights = get_match_weights()
    for scenario in scenario_inputs():
        scored = [(university, score_match(scenario, university, weights)) for university in universities]
        scored.sort(key=lambda item: item[1]["match_score"], reverse=True)

        print(f"\n=== {scenario['name']} ===")
        if not scored:
            print("No universities in catalog.")
            continue
        for idx, (university, result) in enumerate(scored[:3], start=1):
            factors = "; ".join(result["reasoning"]["factors"]) or "-"
            print(f"{idx}. {university.name} ({university.country}) score={result['match_score']:.2f} [{factors}]")


if __name__ == "__main__":
    main()
