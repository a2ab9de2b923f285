"""Abstract market-data provider interface."""

from abc import ABC, abstractmethod

from evcalc.errors import ApiError, OfferNotFoundError, ParticipantNotFoundError
from evcalc.models import Offer
from evcalc.result import Result


class OfferProvider(ABC):
    """Abstract source of offer payloads for an offer id."""

    @abstractmethod
    async def fetch_offer_data(
        self,
        offer_id: str,
        skip_cache: bool = False,
    ) -> Result[list[Offer], ApiError | OfferNotFoundError]:
        """
        Fetch every participant's offer for an offer id.

        Args:
            offer_id: Upstream offer identifier
            skip_cache: Do not write fetched offers to the cache

        Returns:
            Ok(list of offers) or Err with the upstream failure kind
        """
        pass

    @abstractmethod
    async def fetch_offer_for_participant(
        self,
        offer_id: str,
        participant_id: str,
        skip_cache: bool = False,
    ) -> Result[Offer, ApiError | OfferNotFoundError | ParticipantNotFoundError]:
        """
        Fetch a single participant's offer, consulting the offer cache first.

        Args:
            offer_id: Upstream offer identifier
            participant_id: Participant whose offer is wanted
            skip_cache: Bypass the cache read

        Returns:
            Ok(offer) or Err with the failure kind
        """
        pass
