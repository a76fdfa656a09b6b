from __future__ import annotations

import logging
from typing import Any

import pandas as pd
import streamlit as st
from sqlalchemy import select

from db import db_session, init_schema
from errors import NotFoundError, RepositoryError
from export import build_json_summary, build_pdf_report, match_to_dict, profile_to_dict
from matching_service import generate_matches, get_matches
from models import StudentProfile, User
from repositories import StudentRepository, UniversityRepository
from seed import generate_sample_csv, import_universities_csv, seed_demo_student, seed_universities_if_empty
from ui import disclaimers, inject_css, render_disclaimers, render_match_card, t

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="University Matches", layout="wide")
inject_css()


@st.cache_resource
def bootstrap() -> None:
    init_schema()
    with db_session() as db:
        seed_universities_if_empty(db)
        seed_demo_student(db)


def fetch_students() -> dict[str, str]:
    with db_session() as db:
        rows = db.execute(
            select(User.id, User.email).join(StudentProfile, StudentProfile.user_id == User.id).order_by(User.email)
        ).all()
    return {row.email or str(row.id): str(row.id) for row in rows}


def load_matches(user_id: str) -> list[dict[str, Any]]:
    with db_session() as db:
        return [match_to_dict(match) for match in get_matches(db, user_id)]


def regenerate(user_id: str) -> list[dict[str, Any]]:
    with db_session() as db:
        return [match_to_dict(match) for match in generate_matches(db, user_id)]


def load_profile(user_id: str) -> dict[str, Any] | None:
    with db_session() as db:
        profile = StudentRepository(db).find_by_user_id(user_id)
        return profile_to_dict(profile) if profile else None


def render_recommendations(language: str) -> None:
    students = fetch_students()
    if not students:
        st.info(t(language, "no_profile"))
        return

    label = st.selectbox(t(language, "student"), list(students.keys()))
    user_id = students[label]

    if st.button(t(language, "regenerate"), type="primary"):
        try:
            regenerate(user_id)
            st.success(t(language, "regenerated"))
        except NotFoundError:
            st.error(t(language, "no_profile"))
        except RepositoryError as exc:
            logger.exception("Match generation failed for %s", user_id)
            st.error(t(language, "regenerate_failed").format(error=exc))

    matches = load_matches(user_id)
    if not matches:
        st.info(t(language, "no_matches"))
        return

    df = pd.DataFrame(
        [
            {
                "university": item["university_name"],
                "country": item["country"],
                "match_score": item["match_score"],
                "factors": "; ".join(item["factors"]),
            }
            for item in matches
        ]
    )
    st.dataframe(df, use_container_width=True)

    for rank, item in enumerate(matches[:5], start=1):
        render_match_card(item, rank)

    profile = load_profile(user_id) or {}
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            t(language, "download_pdf"),
            data=build_pdf_report(profile, matches, disclaimers(language)),
            file_name=f"matches_{user_id}.pdf",
            mime="application/pdf",
        )
    with col2:
        st.download_button(
            t(language, "download_json"),
            data=build_json_summary({"user_id": user_id, "profile": profile, "matches": matches}),
            file_name=f"matches_{user_id}.json",
            mime="application/json",
        )
    render_disclaimers(language)


def render_catalog(language: str) -> None:
    st.markdown(f"#### {t(language, 'catalog_import')}")
    st.download_button("Download CSV template", data=generate_sample_csv(), file_name="universities_template.csv", mime="text/csv")
    file = st.file_uploader("CSV file", type=["csv"], key="catalog_csv_file")
    if file is not None and st.button("Import universities"):
        try:
            with db_session() as db:
                result = import_universities_csv(db, file.getvalue().decode("utf-8"))
        except ValueError as exc:
            st.error(f"CSV validation failed: {exc}")
        else:
            st.success(f"Import complete. Inserted: {result['inserted']}, Updated: {result['updated']}, Failed: {result['failed']}")
            if result["errors"]:
                st.dataframe(pd.DataFrame(result["errors"]), use_container_width=True)

    with db_session() as db:
        universities = UniversityRepository(db).find_all(active_only=False)
        df = pd.DataFrame(
            [
                {
                    "name": u.name,
                    "country": u.country,
                    "world_ranking": u.world_ranking,
                    "specialization": u.specialization,
                    "acceptance_rate": u.acceptance_rate,
                    "active": u.active,
                }
                for u in universities
            ]
        )
    st.metric("Universities in catalog", len(df))
    if not df.empty:
        st.dataframe(df, use_container_width=True)


def main() -> None:
    bootstrap()
    if "language" not in st.session_state:
        st.session_state["language"] = "en"
    language = st.sidebar.selectbox("Language", ["en", "bm"], key="language")

    st.title(t(language, "app_title"))
    st.caption(t(language, "subtitle"))

    tab1, tab2 = st.tabs(["Recommendations", "Catalog"])
    with tab1:
        render_recommendations(language)
    with tab2:
        render_catalog(language)


if __name__ == "__main__":
    main()
