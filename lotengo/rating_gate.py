from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import utcnow_iso
from lotengo.errors import AuthError, DuplicateRatingError, InvalidInputError, NotFoundError, RatingNotEligibleError
from lotengo.repositories.offers import InMemoryOffersRepository
from lotengo.repositories.ratings import InMemoryRatingsRepository
from lotengo.repositories.requests import InMemoryRequestsRepository
from lotengo.repositories.users import InMemoryUsersRepository

MIN_STARS = 1
MAX_STARS = 5


def incremental_mean(old_avg: float, old_count: int, stars: int) -> float:
    """Running average after one more rating, rounded half-up to one decimal."""
    total = Decimal(str(old_avg)) * old_count + stars
    mean = total / (old_count + 1)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class RatingGate:
    """At most one rating per (request, rater); keeps the target's running average."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.ratings = InMemoryRatingsRepository(store)
        self.offers = InMemoryOffersRepository(store)
        self.requests = InMemoryRequestsRepository(store)
        self.users = InMemoryUsersRepository(store)

    def create_rating(
        self,
        *,
        request_id: str,
        from_user_id: str,
        to_user_id: str,
        stars: int,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """Rate the other party of an accepted request.

        Only the request's buyer and the seller of its accepted offer may rate,
        and only each other.
        """
        if isinstance(stars, bool) or not isinstance(stars, int) or not MIN_STARS <= stars <= MAX_STARS:
            raise InvalidInputError(f"stars must be an integer between {MIN_STARS} and {MAX_STARS}")
        with self._store.transaction():
            request = self.requests.get(request_id)
            if request is None:
                raise NotFoundError(code="REQUEST_NOT_FOUND", message="request not found")
            target = self.users.get(to_user_id)
            if target is None:
                raise NotFoundError(code="USER_NOT_FOUND", message="rated user not found")
            self._require_counterparts(request, from_user_id, to_user_id)
            if self.has_user_rated(request_id, from_user_id):
                raise DuplicateRatingError()

            rating: dict[str, Any] = {
                "id": self.ratings.next_id(),
                "request_id": request_id,
                "from_user_id": from_user_id,
                "to_user_id": to_user_id,
                "stars": stars,
                "created_at": utcnow_iso(),
            }
            if comment is not None and comment.strip():
                rating["comment"] = comment.strip()
            self.ratings.insert(rating)

            old_count = int(target.get("rating_count") or 0)
            target["rating_avg"] = incremental_mean(float(target.get("rating_avg") or 0.0), old_count, stars)
            target["rating_count"] = old_count + 1
            self._store.save()
        return rating

    def _require_counterparts(self, request: dict[str, Any], from_user_id: str, to_user_id: str) -> None:
        accepted = self.offers.get(str(request.get("accepted_offer_id") or ""))
        if accepted is None:
            raise RatingNotEligibleError()
        parties = {request["buyer_id"], accepted["seller_id"]}
        if from_user_id == to_user_id or from_user_id not in parties or to_user_id not in parties:
            raise AuthError("only the buyer and the accepted seller can rate each other", forbidden=True)

    def has_user_rated(self, request_id: str, user_id: str) -> bool:
        return self.ratings.find_by_request_and_rater(request_id=request_id, from_user_id=user_id) is not None

    def get_ratings_by_request(self, request_id: str) -> list[dict[str, Any]]:
        return self.ratings.list_by_request(request_id)

    def get_ratings_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return self.ratings.list_for_user(user_id)
