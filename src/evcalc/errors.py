"""Failure kinds for EV calculation.

Errors are returned inside ``Err`` rather than raised. Each carries a
machine-readable ``code`` and the HTTP status the server layer maps it to.
"""


class CalculationError(Exception):
    """Base failure for any step of the EV pipeline."""

    def __init__(self, message: str, code: str, http_status: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class OfferNotFoundError(CalculationError):
    def __init__(self, offer_id: str):
        super().__init__(f"Offer not found for ID: {offer_id}", "OFFER_NOT_FOUND", 404)


class ParticipantNotFoundError(CalculationError):
    def __init__(self, participant_id: str):
        super().__init__(
            f"Offer not found for player: {participant_id}",
            "PARTICIPANT_NOT_FOUND",
            404,
        )


class ApiError(CalculationError):
    """Upstream failure: non-404 status, network fault, or malformed payload."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, "API_ERROR", status_code or 502)
        self.status_code = status_code


class OneSidedMarketError(CalculationError):
    def __init__(self, market: str, code: str = "ONE_SIDED_MARKET"):
        super().__init__(f"One-sided market found for: {market}", code, 409)


class NoSharpOutcomesError(CalculationError):
    def __init__(self, sharps: list[str]):
        super().__init__(
            f"No sharp outcomes found for sharps: {', '.join(sharps)}",
            "NO_SHARP_OUTCOMES",
            422,
        )


class TargetOutcomeNotFoundError(CalculationError):
    def __init__(self, target_book: str):
        super().__init__(
            f"Target outcome not found for book: {target_book}",
            "TARGET_OUTCOME_NOT_FOUND",
            404,
        )


class TargetOutcomeNotCompleteError(OneSidedMarketError):
    def __init__(self, target_book: str):
        super().__init__(target_book, code="TARGET_OUTCOME_NOT_COMPLETE")
        self.message = f"Target outcome not complete for book: {target_book}"
        self.args = (self.message,)


class InvalidOddsError(CalculationError):
    def __init__(self, american_odds: str):
        super().__init__(f"Invalid American odds: {american_odds}", "INVALID_ODDS", 422)


class DevigError(CalculationError):
    def __init__(self, message: str):
        super().__init__(message, "DEVIG_ERROR", 422)
