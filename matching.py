from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any


MODEL_VERSION = "1.0.0"

NEUTRAL_ACADEMIC = 0.5
NEUTRAL_LOCATION = 0.6
NEUTRAL_BUDGET = 0.5
NEUTRAL_PROGRAM = 0.5
NEUTRAL_ADMISSION = 0.5

COUNTRY_ALIASES = {
    "usa": "united states",
    "us": "united states",
    "u.s.": "united states",
    "u.s.a.": "united states",
    "united states of america": "united states",
    "america": "united states",
    "uk": "united kingdom",
    "u.k.": "united kingdom",
    "great britain": "united kingdom",
    "britain": "united kingdom",
    "england": "united kingdom",
    "uae": "united arab emirates",
    "holland": "netherlands",
    "the netherlands": "netherlands",
    "south korea": "korea",
    "republic of korea": "korea",
}

PROGRAM_STOPWORDS = {"and", "of", "the", "in", "for", "&", "studies"}

FACTOR_LABELS = {
    "academicFit": "Academic fit",
    "location": "Location preference",
    "budget": "Budget compatibility",
    "program": "Program alignment",
    "admission": "Admission chances",
}


@dataclass(frozen=True)
class MatchWeights:
    academic_fit: float = 0.30
    location: float = 0.20
    budget: float = 0.25
    program: float = 0.15
    admission: float = 0.10

    def as_dict(self) -> dict[str, float]:
        return {
            "academicFit": self.academic_fit,
            "location": self.location,
            "budget": self.budget,
            "program": self.program,
            "admission": self.admission,
        }

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "MatchWeights":
        keys = {
            "academicFit": "academic_fit",
            "location": "location",
            "budget": "budget",
            "program": "program",
            "admission": "admission",
        }
        unknown = sorted(set(values) - set(keys))
        if unknown:
            raise ValueError(f"Unknown weight keys: {unknown}")
        overrides = {keys[name]: float(value) for name, value in values.items()}
        return cls(**{**asdict(DEFAULT_WEIGHTS), **overrides})


DEFAULT_WEIGHTS = MatchWeights()


@dataclass
class ScoreDetail:
    score: float
    factors: list[str] = field(default_factory=list)
    measured: bool = True


def _field(record: Any, name: str, default: Any = None) -> Any:
    if record is None:
        return default
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _parse_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        raw = str(value).strip().replace(",", "")
        if not raw or raw.lower() in {"n/a", "na", "none", "null", "-"}:
            return None
        try:
            number = float(raw)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def normalize_country(country: Any) -> str:
    value = str(country or "").strip().lower()
    return COUNTRY_ALIASES.get(value, value)


def parse_acceptance_rate(value: Any) -> float | None:
    """Return the acceptance rate on a 0..1 scale.

    Accepts bare numbers (``30``, ``30.00``, ``0.3``) and percent strings
    (``"30%"``). A ``%`` suffix is always a percentage. Bare values above 1
    are read as percentages, bare values at or below 1 as already
    normalized. Unparseable or negative input yields None.
    """
    percent = False
    if isinstance(value, str):
        value = value.strip()
        percent = value.endswith("%")
        value = value.rstrip("%").strip()
    rate = _parse_number(value)
    if rate is None or rate < 0:
        return None
    if percent or rate > 1:
        rate = rate / 100.0
    return _clamp(rate)


def parse_budget_range(value: Any) -> tuple[float | None, float | None] | None:
    if value is None:
        return None
    if isinstance(value, str):
        parts = [part for part in value.replace(" ", "").split("-") if part]
        if len(parts) == 1:
            return None, _parse_number(parts[0])
        if len(parts) == 2:
            return _parse_number(parts[0]), _parse_number(parts[1])
        return None
    return _parse_number(_field(value, "min")), _parse_number(_field(value, "max"))


def _tuition_range(university: Any) -> tuple[float, float] | None:
    fees = _field(university, "tuition_fees") or {}
    for bucket in ("international", "domestic"):
        band = _field(fees, bucket)
        if not band:
            continue
        low = _parse_number(_field(band, "min"))
        high = _parse_number(_field(band, "max"))
        if low is None and high is None:
            continue
        low = high if low is None else low
        high = low if high is None else high
        return min(low, high), max(low, high)
    return None


def _threshold_fit(actual: float, required: float) -> float:
    if required <= 0:
        return 0.9 if actual > 0 else 0.1
    if actual >= required:
        return min(1.0, 0.9 + (actual - required) / required * 0.5)
    ratio = max(0.0, actual / required)
    return max(0.1, 0.9 * ratio * ratio)


def score_academic(student: Any, university: Any) -> ScoreDetail:
    requirements = _field(university, "admission_requirements") or {}
    gpa = _parse_number(_field(student, "gpa"))
    min_gpa = _parse_number(_field(requirements, "minimumGPA"))

    ielts_required = _parse_number(_field(requirements, "ieltsScore"))
    ielts = _parse_number(_field(_field(student, "test_scores") or {}, "ielts"))

    gpa_measured = gpa is not None and min_gpa is not None
    ielts_measured = ielts is not None and ielts_required is not None
    if not gpa_measured and not ielts_measured:
        return ScoreDetail(NEUTRAL_ACADEMIC, [], measured=False)

    gpa_part = _threshold_fit(gpa, min_gpa) if gpa_measured else NEUTRAL_ACADEMIC
    if ielts_measured:
        score = 0.75 * gpa_part + 0.25 * _threshold_fit(ielts, ielts_required)
    else:
        score = gpa_part

    factors: list[str] = []
    if score >= 0.8:
        factors.append("Strong academic profile match")
    elif score < 0.5:
        factors.append("Academic requirements may be challenging")
    if ielts_measured and ielts >= ielts_required:
        factors.append(f"IELTS meets requirement ({ielts:.1f}/{ielts_required:.1f})")
    return ScoreDetail(_clamp(score), factors)


def score_location(student: Any, university: Any) -> ScoreDetail:
    destination = normalize_country(_field(student, "destination_country"))
    country = normalize_country(_field(university, "country"))
    preferred = {normalize_country(item) for item in (_field(student, "preferred_countries") or []) if str(item).strip()}

    if not destination and not preferred:
        return ScoreDetail(NEUTRAL_LOCATION, [], measured=False)
    if not country:
        return ScoreDetail(NEUTRAL_LOCATION, [], measured=False)
    if destination and destination == country:
        return ScoreDetail(1.0, ["Perfect location match"])
    if country in preferred:
        return ScoreDetail(0.8, ["Listed among preferred countries"])
    return ScoreDetail(0.3, ["Outside preferred destination"])


def score_budget(student: Any, university: Any) -> ScoreDetail:
    budget = parse_budget_range(_field(student, "budget_range"))
    tuition = _tuition_range(university)
    if budget is None or budget[1] is None or budget[1] <= 0 or tuition is None:
        return ScoreDetail(NEUTRAL_BUDGET, [], measured=False)

    budget_max = budget[1]
    tuition_min, tuition_max = tuition
    if tuition_max <= budget_max:
        return ScoreDetail(1.0, ["Within declared budget"])
    if tuition_min > budget_max:
        return ScoreDetail(0.1 + 0.2 * (budget_max / tuition_min), ["May exceed budget"])

    covered = (budget_max - tuition_min) / (tuition_max - tuition_min)
    return ScoreDetail(0.4 + 0.5 * covered, ["Partially within budget"])


def _specializations(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def _tokens(value: str) -> set[str]:
    return {token for token in value.lower().replace("/", " ").split() if token not in PROGRAM_STOPWORDS}


def score_program(student: Any, university: Any) -> ScoreDetail:
    major = str(_field(student, "desired_major") or "").strip()
    fields = _specializations(_field(university, "specialization"))
    if not major or not fields:
        return ScoreDetail(NEUTRAL_PROGRAM, [], measured=False)

    major_lower = major.lower()
    for item in fields:
        item_lower = item.lower()
        if item_lower == major_lower:
            return ScoreDetail(1.0, [f"Program alignment with {item}"])
    for item in fields:
        item_lower = item.lower()
        if item_lower in major_lower or major_lower in item_lower:
            return ScoreDetail(0.9, [f"Program alignment with {item}"])

    major_tokens = _tokens(major)
    for item in fields:
        if major_tokens & _tokens(item):
            return ScoreDetail(0.6, [f"Related field offered: {item}"])
    return ScoreDetail(0.2, [])


def score_admission(student: Any, university: Any) -> ScoreDetail:
    rate = parse_acceptance_rate(_field(university, "acceptance_rate"))
    if rate is None:
        return ScoreDetail(NEUTRAL_ADMISSION, [], measured=False)

    score = 0.1 + 0.85 * math.sqrt(rate)
    factors: list[str] = []
    if score >= 0.7:
        factors.append("Favorable admission odds")
    elif rate < 0.15:
        factors.append("Highly selective admissions")
    return ScoreDetail(score, factors)


def format_match_score(score: float) -> str:
    return f"{_clamp(score):.2f}"


def _details(components: dict[str, ScoreDetail], weights: dict[str, float], total: float) -> str:
    measured = {key: detail for key, detail in components.items() if detail.measured}
    if not measured:
        return f"Limited profile data; neutral estimate of {total:.2f} across all factors."
    key = max(measured, key=lambda name: measured[name].score * weights[name])
    contribution = measured[key].score * weights[key]
    return f"{FACTOR_LABELS[key]} contributes most to this match ({contribution:.2f} of {total:.2f})."


def score_match(student: Any, university: Any, weights: MatchWeights = DEFAULT_WEIGHTS) -> dict[str, Any]:
    components = {
        "academicFit": score_academic(student, university),
        "location": score_location(student, university),
        "budget": score_budget(student, university),
        "program": score_program(student, university),
        "admission": score_admission(student, university),
    }
    weight_map = weights.as_dict()

    total = sum(detail.score * weight_map[key] for key, detail in components.items())
    match_score = round(_clamp(total), 2)

    factors: list[str] = []
    for detail in components.values():
        factors.extend(detail.factors)

    return {
        "match_score": match_score,
        "component_scores": {key: round(detail.score, 4) for key, detail in components.items()},
        "reasoning": {
            "factors": factors,
            "weights": weight_map,
            "details": _details(components, weight_map, match_score),
        },
    }
