"""Pytest configuration and shared fixtures for API tests."""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set config before app imports so settings pick it up
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("APP_ENV", "development")

from sleep_api.core.rate_limit import limiter
from sleep_api.main import app
from sleep_api.services.llm_gateway import close_client, open_client

LLM_REPLY = """📊 Rohdaten – 2024-12-02

Gesamtschlaf: 7 h 30 min
Wach: 5 min
REM: 1 h 30 min
Kern: 3 h 0 min
Tief: 2 h 30 min
Zeitraum: 22:00 – 05:30

💯 Biohacker-Schlafscore

| Kategorie | Punkte |
| Gesamtschlaf | 9 |
| Tiefschlaf | 10 |
| REM | 9 |
| Wachphasen | 10 |
| Kontinuität | 9 |

➡️ Gesamt: 47 / 50 = 94 % (A+ Performance-Schlaf)

🧠 Analyse

Wow, was für eine Nacht! 🚀 Dein Tiefschlaf ist top.

⚠️ Was verbessert werden könnte

Geh 15 Minuten früher ins Bett.

📈 9-Tage-Trend

Zu wenig Daten vorhanden

🔥 Bottom Line

Starke Nacht, weiter so! 💪
"""


@pytest.fixture
def valid_payload() -> dict:
    return {
        "date": "2024-12-02",
        "totalSleep": {"hours": 7, "minutes": 30},
        "awake": {"minutes": 5},
        "rem": {"hours": 1, "minutes": 30},
        "light": {"hours": 3, "minutes": 0},
        "deep": {"hours": 2, "minutes": 30},
        "sleepTime": {"from": "22:00", "to": "05:30"},
    }


@pytest.fixture
def llm_reply() -> str:
    return LLM_REPLY


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with empty rate-limit counters."""
    limiter.reset()
    yield


@pytest_asyncio.fixture
async def client():
    """Yield AsyncClient against the app (lifespan not run; gateway client opened here)."""
    open_client(timeout=30.0)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    await close_client()
