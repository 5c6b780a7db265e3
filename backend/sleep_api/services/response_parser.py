"""
Parse the free-text sleep report returned by the LLM.
Never raises: a missing score line or section degrades to FALLBACK, and the
full reply is always kept as `analysis`.
"""
from __future__ import annotations

import re

from sleep_api.schemas.sleep import ParsedAnalysis

FALLBACK = "Siehe Analyse"

# "➡️ Gesamt: 47 / 50 = 94 % (A+ Performance-Schlaf)"
SCORE_RE = re.compile(
    r"(?:➡️?\s*)?Gesamt:\s*(\d+)\s*/\s*50\s*=\s*(\d+(?:[.,]\d+)?)\s*%\s*\(([^)]+)\)"
)

# Heading lines of the report layout, with or without emoji/markdown decoration
HEADING_RE = re.compile(
    r"^[^\w\n]*(?P<name>Rohdaten|Biohacker-Schlafscore|Analyse|Was verbessert werden könnte|9-Tage-Trend|Bottom Line)"
    r"\b[^\n]{0,40}$",
    re.MULTILINE,
)

TREND_SECTION = "9-Tage-Trend"
RECOMMENDATION_SECTION = "Was verbessert werden könnte"


def extract_score(text: str) -> str:
    """Return e.g. "94% (A+ Performance-Schlaf)", or FALLBACK when the score line is missing."""
    if not isinstance(text, str):
        return FALLBACK
    m = SCORE_RE.search(text)
    if not m:
        return FALLBACK
    return f"{m.group(2)}% ({m.group(3).strip()})"


def extract_sections(text: str) -> dict[str, str]:
    """Heading name -> body text up to the next heading. First occurrence wins."""
    if not isinstance(text, str):
        return {}
    headings = list(HEADING_RE.finditer(text))
    sections: dict[str, str] = {}
    for i, heading in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(text)
        body = text[heading.end():end].strip()
        # Layout separator closes the last section
        body = re.split(r"^\s*---+\s*$", body, maxsplit=1, flags=re.MULTILINE)[0].strip()
        sections.setdefault(heading.group("name"), body)
    return sections


def parse_analysis_text(text: str) -> ParsedAnalysis:
    raw = text if isinstance(text, str) else ""
    sections = extract_sections(raw)
    return ParsedAnalysis(
        score=extract_score(raw),
        analysis=raw,
        trend=sections.get(TREND_SECTION) or FALLBACK,
        recommendation=sections.get(RECOMMENDATION_SECTION) or FALLBACK,
    )
