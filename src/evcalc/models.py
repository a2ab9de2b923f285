"""Wire models for the upstream offer payload and the EV request/response shapes.

Field names are snake_case in Python and camelCase on the wire; always dump
with ``by_alias=True``.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

SideLabel = Literal["Over", "Under"]
DevigMethod = Literal["multiplicative", "additive", "power", "shin", "os_skewed"]

MAX_BATCH_ITEMS = 10


class WireModel(BaseModel):
    """Base model accepting both camelCase aliases and snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Upstream payload
class Participant(WireModel):
    id: str
    name: str
    title: str
    is_home: bool
    participant_logo: str
    participant_type: str


class Outcome(WireModel):
    """One sportsbook's quote for one side of a market at one line."""

    id: str
    display_label: str
    american_odds: str  # e.g. "-110", "+150"
    best_hold_outcome: bool
    odds: float  # implied-probability-bearing weight consumed by devig
    line: str  # kept as string to preserve upstream formatting
    label: SideLabel
    sportsbook_code: str
    sportsbook_logo: str
    participant_logo: str
    participant_type: str
    deep_link_url: Optional[str] = None
    title: str
    true_win_probability: Optional[float] = None
    ev: Optional[float] = None
    hash_code_bet_side_with_line: str
    hash_code: str
    sportsbook_outcome_id: Optional[str] = None


class SharpMetrics(WireModel):
    outlier: float
    average_odds: float
    counts: Optional[float] = None


class Side(WireModel):
    label: str
    best_outcome: Optional[Outcome] = None
    outcomes: list[Outcome]
    sharp_metrics: Optional[SharpMetrics] = None


class GraphDetail(WireModel):
    hash_code_bet_side_with_line: str
    line: str
    label: str


class Offer(WireModel):
    """One bettable market for a single participant."""

    event_name: str
    tournament_name: str
    offer_name: str
    start_date: str
    date_string: str
    hold: float
    sportsbooks: list[str]
    participants: list[Participant]
    sides: list[Side]
    graph_details: Optional[list[GraphDetail]] = None


OfferList = TypeAdapter(list[Offer])


# Requests
class BatchEVItem(WireModel):
    """A single batch item; offer_id is shared at the batch level."""

    player_id: str
    line: float
    side: SideLabel
    target_book: str
    sharps: list[str] = Field(min_length=1)
    devig_method: DevigMethod
    bankroll: Optional[float] = Field(default=None, gt=0)


class CalculateEVRequest(WireModel):
    offer_id: str
    player_id: str
    line: float
    side: SideLabel
    target_book: str
    sharps: list[str]
    devig_method: DevigMethod
    bankroll: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def from_batch_item(cls, offer_id: str, item: BatchEVItem) -> "CalculateEVRequest":
        return cls(offer_id=offer_id, **item.model_dump())


class BatchCalculateEVRequest(WireModel):
    offer_id: str
    items: list[BatchEVItem] = Field(min_length=1, max_length=MAX_BATCH_ITEMS)


# Responses
class KellyBetSizing(WireModel):
    """Kelly criterion sizing; only present when a bankroll is supplied."""

    full: float
    quarter: float
    recommended_bet: float
    expected_profit: float
    bankroll: float


class BestAvailableOdds(WireModel):
    sportsbook_code: str
    american_odds: float


class CalculateEVResponse(WireModel):
    player: str
    market: str
    line: float
    side: SideLabel
    target_book: str
    target_odds: int
    true_probability: float
    implied_probability: float
    expected_value: float
    sharps_used: list[str]
    best_available_odds: BestAvailableOdds
    kelly: Optional[KellyBetSizing] = None


class BatchItemError(WireModel):
    code: str
    message: str


class BatchItemSuccess(WireModel):
    index: int
    success: Literal[True] = True
    result: CalculateEVResponse


class BatchItemFailure(WireModel):
    index: int
    success: Literal[False] = False
    error: BatchItemError


BatchItemResult = Union[BatchItemSuccess, BatchItemFailure]


class BatchCalculateEVResponse(WireModel):
    offer_id: str
    total_items: int
    success_count: int
    error_count: int
    results: list[BatchItemResult]
