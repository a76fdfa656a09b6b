from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from html import escape
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer


def _safe_text(value: Any) -> str:
    if value is None:
        return "-"
    return escape(str(value))


def match_to_dict(match: Any) -> dict[str, Any]:
    university = getattr(match, "university", None)
    reasoning = match.reasoning or {}
    return {
        "id": str(match.id),
        "user_id": str(match.user_id),
        "university_id": str(match.university_id),
        "university_name": getattr(university, "name", None),
        "country": getattr(university, "country", None),
        "match_score": match.match_score,
        "factors": list(reasoning.get("factors", [])),
        "details": reasoning.get("details", ""),
        "weights": dict(reasoning.get("weights", {})),
        "model_version": match.model_version,
    }


def profile_to_dict(profile: Any) -> dict[str, Any]:
    return {
        "academic_level": profile.academic_level,
        "gpa": float(profile.gpa) if profile.gpa is not None else None,
        "desired_major": profile.desired_major,
        "destination_country": profile.destination_country,
        "preferred_countries": list(profile.preferred_countries or []),
        "budget_range": profile.budget_range,
        "test_scores": profile.test_scores,
    }


def build_pdf_report(
    profile: dict[str, Any],
    matches: list[dict[str, Any]],
    disclaimers: list[str],
    top_n: int = 10,
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title="University Match Report")
    styles = getSampleStyleSheet()
    normal = styles["BodyText"]
    heading = styles["Heading2"]

    story = []
    story.append(Paragraph("University Match Report", styles["Title"]))
    story.append(Paragraph(f"Generated: {datetime.now(timezone.utc).isoformat()}", normal))
    story.append(Spacer(1, 12))

    story.append(Paragraph("Student Profile Summary", heading))
    for key in [
        "academic_level",
        "gpa",
        "desired_major",
        "destination_country",
        "budget_range",
    ]:
        story.append(Paragraph(f"{key}: {_safe_text(profile.get(key))}", normal))
    story.append(Spacer(1, 8))

    if matches:
        story.append(Paragraph("Ranked University Matches", heading))
        for idx, match in enumerate(matches[:top_n], start=1):
            story.append(
                Paragraph(
                    f"{idx}. {_safe_text(match.get('university_name'))} ({_safe_text(match.get('country'))})",
                    styles["Heading3"],
                )
            )
            story.append(Paragraph(f"Match score: {_safe_text(match.get('match_score'))}", normal))
            factors = ", ".join(escape(item) for item in match.get("factors", [])[:5])
            story.append(Paragraph(f"Why it fits: {factors or '-'}", normal))
            story.append(Paragraph(_safe_text(match.get("details")), normal))
            story.append(Spacer(1, 8))
    else:
        story.append(Paragraph("No matches generated yet.", normal))

    story.append(Spacer(1, 12))
    story.append(Paragraph("Disclaimers", heading))
    for text in disclaimers:
        story.append(Paragraph(f"- {_safe_text(text)}", normal))

    doc.build(story)
    buffer.seek(0)
    return buffer.read()


def build_json_summary(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=True, default=str).encode("utf-8")
