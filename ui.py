from __future__ import annotations

from html import escape
from typing import Any

import streamlit as st


I18N = {
    "en": {
        "app_title": "University Matches",
        "subtitle": "Ranked university recommendations built from the student profile.",
        "student": "Student",
        "regenerate": "Regenerate matches",
        "no_matches": "No matches yet. Generate them from the current profile.",
        "no_profile": "This student has no profile yet. Create one before generating matches.",
        "download_pdf": "Download PDF Report",
        "download_json": "Download JSON Summary",
        "catalog_import": "Catalog import",
        "regenerated": "Matches regenerated.",
        "regenerate_failed": "Match generation failed: {error}",
        "disclaimer_general": "Match scores are guidance only, not admission predictions.",
        "disclaimer_fees": "Tuition figures are indicative and change every intake.",
    },
    "bm": {
        "app_title": "Padanan Universiti",
        "subtitle": "Cadangan universiti mengikut profil pelajar.",
        "student": "Pelajar",
        "regenerate": "Jana semula padanan",
        "no_matches": "Tiada padanan lagi. Jana daripada profil semasa.",
        "no_profile": "Pelajar ini belum ada profil. Cipta profil dahulu.",
        "download_pdf": "Muat Turun Laporan PDF",
        "download_json": "Muat Turun Ringkasan JSON",
        "catalog_import": "Import katalog",
        "regenerated": "Padanan telah dijana semula.",
        "regenerate_failed": "Penjanaan padanan gagal: {error}",
        "disclaimer_general": "Skor padanan hanya panduan, bukan ramalan kemasukan.",
        "disclaimer_fees": "Yuran pengajian adalah anggaran dan berubah setiap pengambilan.",
    },
}


@st.cache_data
def get_i18n(language: str) -> dict[str, str]:
    return I18N.get(language, I18N["en"])


def t(language: str, key: str) -> str:
    return get_i18n(language).get(key, key)


def disclaimers(language: str) -> list[str]:
    return [t(language, "disclaimer_general"), t(language, "disclaimer_fees")]


def inject_css() -> None:
    st.markdown(
        """
        <style>
            .match-meter { margin: 0.35rem 0 0.6rem 0; }
            .match-meter-head { display: flex; justify-content: space-between; font-size: 0.9rem; }
            .match-meter-track { background: #e5edf8; border-radius: 999px; height: 8px; overflow: hidden; }
            .match-meter-fill { background: linear-gradient(90deg, #0D47A1, #FF7A00); height: 8px; }
            .match-factor { display: inline-block; margin: 0 0.3rem 0.3rem 0; padding: 0.1rem 0.55rem;
                            border-radius: 999px; background: #eef4ff; font-size: 0.8rem; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_meter(label: str, pct: float, value_text: str | None = None) -> None:
    pct = max(0.0, min(1.0, pct))
    pct_text = value_text or f"{int(round(pct * 100))}%"
    st.markdown(
        f"""
        <div class="match-meter">
            <div class="match-meter-head">
                <span>{escape(label)}</span>
                <span>{escape(pct_text)}</span>
            </div>
            <div class="match-meter-track">
                <div class="match-meter-fill" style="width: {pct * 100:.1f}%;"></div>
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def render_match_card(match: dict[str, Any], rank: int) -> None:
    with st.container(border=True):
        st.markdown(f"**{rank}. {escape(match.get('university_name') or 'University')}** ({escape(match.get('country') or '-')})")
        score = float(match.get("match_score") or 0)
        render_meter("Match score", score, match.get("match_score"))
        chips = "".join(f'<span class="match-factor">{escape(item)}</span>' for item in match.get("factors", []))
        if chips:
            st.markdown(chips, unsafe_allow_html=True)
        if match.get("details"):
            st.caption(match["details"])


def render_disclaimers(language: str) -> None:
    for text in disclaimers(language):
        st.caption(text)
