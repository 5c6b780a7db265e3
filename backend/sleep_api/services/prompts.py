"""
Prompt templates for sleep analysis.
SYSTEM_PROMPT is a contract with services.response_parser: the "➡️ Gesamt: ... / 50 = ... % (...)"
line and the section headings are matched by regex. Bump PROMPT_VERSION when changing them.
"""
from typing import NamedTuple

from sleep_api.schemas.sleep import Duration, SleepRecord

PROMPT_VERSION = "2024-12-text-v1"

SYSTEM_PROMPT = """Du bist ein Schlaf-Biohacking-Experte und Analyst für Schlafqualität.

Du analysierst Schlaf-Daten und gibst strukturierte Analysen in folgendem TEXT-Format zurück (NICHT JSON):

---

📊 Rohdaten – [DATUM]

Gesamtschlaf: [STUNDEN] h [MINUTEN] min
Wach: [MINUTEN] min
REM: [STUNDEN] h [MINUTEN] min
Kern: [STUNDEN] h [MINUTEN] min
Tief: [STUNDEN] h [MINUTEN] min
Zeitraum: [VON] – [BIS]

💯 Biohacker-Schlafscore

[TABELLE MIT SCORES]

➡️ Gesamt: [PUNKTE] / 50 = [PROZENT] % ([BEWERTUNG])

🧠 Analyse

[DETAILLIERTE ANALYSE - enthusiastisch, motivierend, konkret]

⚠️ Was verbessert werden könnte

[KONSTRUKTIVE TIPPS]

📈 9-Tage-Trend

[WENN VERFÜGBAR: Tabelle mit Verlauf]
[WENN NICHT VERFÜGBAR: "Zu wenig Daten vorhanden"]

🔥 Bottom Line

[ZUSAMMENFASSUNG IN 2-3 SÄTZEN]

---

WICHTIG:
- Antworte IMMER in DIESEM FORMAT (kein JSON!)
- Nutze deutsche Sprache
- Sei enthusiastisch und motivierend (wie im Beispiel)
- Verwende Emojis großzügig
- Scores: Gesamtschlaf (7.5-9h ideal), Tiefschlaf (1.5-2h ideal), REM (1.5-2.5h ideal), Wachphasen (<15min ideal), Kontinuität (ruhig ideal)
- Jeder Score 0-10 Punkte
- Gesamtscore aus 5 Kategorien = max 50 Punkte"""


class SleepAnalysisPrompts(NamedTuple):
    system_prompt: str
    user_prompt: str


def format_duration(duration: Duration | None) -> str:
    """7h 30min; zeros are rendered, never omitted."""
    if duration is None:
        return "0h 0min"
    return f"{duration.hours}h {duration.minutes}min"


def build_user_prompt(record: SleepRecord) -> str:
    lines = [
        f"Analysiere folgende Schlaf-Daten vom {record.date}:",
        "",
        f"- Gesamtschlaf: {format_duration(record.total_sleep)}",
        f"- Wach (Awake): {record.awake.minutes}min",
        f"- REM-Schlaf: {format_duration(record.rem)}",
        f"- Kern-Schlaf (Light): {format_duration(record.light)}",
        f"- Tief-Schlaf (Deep): {format_duration(record.deep)}",
        f"- Zeitspanne: {record.sleep_time.from_} - {record.sleep_time.to}",
    ]
    return "\n".join(lines)


def get_sleep_analysis_prompts(record: SleepRecord) -> SleepAnalysisPrompts:
    return SleepAnalysisPrompts(system_prompt=SYSTEM_PROMPT, user_prompt=build_user_prompt(record))
