"""Shared fixtures: offer/outcome factories and an in-memory Redis double."""

import fnmatch
from typing import Optional

import pytest

from evcalc.ingestion.cache import RedisCache
from evcalc.models import Offer, Outcome, Participant, Side
from evcalc.odds.conversions import american_to_probability

OFFER_ID = "offer-123"
PLAYER_ID = "player-1"
PLAYER_NAME = "LeBron James"
MARKET = "Points"

# (book, over american, under american) at line 25.5
DEFAULT_QUOTES = [
    ("PINNACLE", "-115", "-105"),
    ("CIRCA", "-120", "+100"),
    ("DRAFTKINGS", "-110", "-110"),
    ("FANDUEL", "+105", "-125"),
]


class FakeRedis:
    """Dict-backed stand-in for redis.asyncio.Redis (decode_responses=True)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.closed = False

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    async def scan_iter(self, match=None, count=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        self.closed = True


def build_outcome(
    book: str,
    label: str,
    american_odds: str,
    line: str = "25.5",
    odds: Optional[float] = None,
) -> Outcome:
    """Outcome whose implied weight defaults to the probability of its American odds."""
    if odds is None:
        odds = american_to_probability(float(american_odds))
    return Outcome(
        id=f"{book}-{label}-{line}",
        display_label=f"{label} {line}",
        american_odds=american_odds,
        best_hold_outcome=False,
        odds=odds,
        line=line,
        label=label,
        sportsbook_code=book,
        sportsbook_logo=f"https://logos.example.com/{book.lower()}.png",
        participant_logo="https://logos.example.com/player.png",
        participant_type="Player",
        title=PLAYER_NAME,
        hash_code_bet_side_with_line=f"{label}-{line}",
        hash_code=f"{book}-{label}-{line}",
    )


def build_offer(
    outcomes: list[Outcome],
    participant_id: str = PLAYER_ID,
    participant_name: str = PLAYER_NAME,
    offer_name: str = MARKET,
) -> Offer:
    """Offer for a single participant with outcomes grouped by side label."""
    sides = [
        Side(label=label, outcomes=[o for o in outcomes if o.label == label])
        for label in ("Over", "Under")
    ]
    return Offer(
        event_name="Lakers @ Celtics",
        tournament_name="NBA",
        offer_name=offer_name,
        start_date="2026-10-19T23:30:00Z",
        date_string="Mon 7:30 PM",
        hold=0.045,
        sportsbooks=sorted({o.sportsbook_code for o in outcomes}),
        participants=[
            Participant(
                id=participant_id,
                name=participant_name,
                title=participant_name,
                is_home=False,
                participant_logo="https://logos.example.com/player.png",
                participant_type="Player",
            )
        ],
        sides=sides,
    )


def build_default_outcomes(line: str = "25.5") -> list[Outcome]:
    outcomes = []
    for book, over, under in DEFAULT_QUOTES:
        outcomes.append(build_outcome(book, "Over", over, line=line))
        outcomes.append(build_outcome(book, "Under", under, line=line))
    return outcomes


@pytest.fixture
def make_outcome():
    return build_outcome


@pytest.fixture
def make_offer():
    return build_offer


@pytest.fixture
def default_outcomes() -> list[Outcome]:
    """PINNACLE, CIRCA, DRAFTKINGS and FANDUEL quoting both sides of 25.5."""
    return build_default_outcomes()


@pytest.fixture
def offer(default_outcomes) -> Offer:
    """Points offer for player-1 with four books quoting 25.5."""
    return build_offer(default_outcomes)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis) -> RedisCache:
    """RedisCache wired to the in-memory double."""
    return RedisCache(api_ttl=60, ev_ttl=300, client=fake_redis)
