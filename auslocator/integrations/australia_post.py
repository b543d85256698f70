"""Australia Post postcode/locality search (PAC) integration.

Docs: https://developers.auspost.com.au/apis/pacpcs-registration
"""

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from auslocator.config import settings
from auslocator.models import Location
from auslocator.schemas import SearchResult, ValidationResult
from auslocator.utils.states import format_state_display

logger = logging.getLogger(__name__)

POSTCODE_SEARCH = "/postcode/search.json"

VALID_MESSAGE = "The postcode, suburb, and state input are valid."
UNAVAILABLE_MESSAGE = (
    "Unable to verify address. Please try with different details or try again later."
)


class AustraliaPostError(Exception):
    """Upstream request failed (transport error, non-200 or bad JSON)."""


class AustraliaPostUnavailable(Exception):
    """Raised by the health probe when the upstream API is not responding."""


def coerce_localities(data: Any) -> list[dict[str, Any]]:
    """Flatten ``localities.locality`` into a list.

    The upstream returns a single object for one match, an array for several,
    and ``{"localities": ""}`` when nothing matches.
    """
    localities = data.get("localities") if isinstance(data, dict) else None
    if not isinstance(localities, dict):
        return []
    locality = localities.get("locality")
    if locality is None:
        return []
    if isinstance(locality, dict):
        return [locality]
    return [item for item in locality if isinstance(item, dict)]


def parse_locations(data: Any) -> list[Location]:
    locations = []
    for raw in coerce_localities(data):
        try:
            locations.append(Location.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed locality | id=%s | %s", raw.get("id"), str(e)[:200])
    return locations


class AustraliaPostClient:
    """Async client for the Australia Post postcode search API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 30,
    ):
        self.api_key = settings.australia_post_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.australia_post_base_url).rstrip("/")
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _request(self, endpoint: str, params: dict[str, str]) -> Any:
        """GET an endpoint and return decoded JSON; raises AustraliaPostError."""
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(
                    f"{self.base_url}{endpoint}", params=params, headers=self._headers(),
                )
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Australia Post error | %dms | %s", elapsed_ms, str(e)[:200])
            raise AustraliaPostError(f"Australia Post request failed: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if resp.status_code != 200:
            logger.warning(
                "Australia Post | status=%d | %dms | params=%s",
                resp.status_code, elapsed_ms, params,
            )
            raise AustraliaPostError(
                f"Australia Post API error: {resp.status_code} {resp.reason_phrase}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise AustraliaPostError("Australia Post returned invalid JSON") from e

        logger.info("Australia Post OK | %dms | params=%s", elapsed_ms, params)
        return data

    async def verify(self, postcode: str, suburb: str, state: str) -> ValidationResult:
        """Check that ``postcode`` belongs to ``suburb`` in ``state``."""
        try:
            data = await self._request(POSTCODE_SEARCH, {"q": suburb, "state": state})
        except AustraliaPostError:
            return ValidationResult(isValid=False, message=UNAVAILABLE_MESSAGE)

        localities = parse_locations(data)
        if not localities:
            return ValidationResult(
                isValid=False,
                message=(
                    f"The suburb {suburb} does not exist in the state "
                    f"{format_state_display(state)} ({state})."
                ),
            )

        wanted = int(postcode) if postcode.isdigit() else None
        matching = [loc for loc in localities if loc.postcode == wanted]
        if not matching:
            return ValidationResult(
                isValid=False,
                message=f"The postcode {postcode} does not match the suburb {suburb}.",
            )

        return ValidationResult(isValid=True, message=VALID_MESSAGE, location=matching[0])

    async def search(
        self,
        query: str,
        category: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> SearchResult:
        """Free-text locality search, optionally restricted to one category.

        ``total`` counts every match after the category filter, before the
        ``offset``/``limit`` window is applied.
        """
        try:
            data = await self._request(POSTCODE_SEARCH, {"q": query})
        except AustraliaPostError:
            return SearchResult()

        locations = parse_locations(data)
        if category:
            locations = [loc for loc in locations if loc.category == category]

        return SearchResult(locations=locations[offset:offset + limit], total=len(locations))

    async def health_check(self) -> str:
        """Probe upstream with a known-good query (Sydney, 2000)."""
        try:
            await self._request(POSTCODE_SEARCH, {"q": "2000"})
        except AustraliaPostError as e:
            logger.error("Australia Post health check failed: %s", e)
            raise AustraliaPostUnavailable("Australia Post API is not responding") from e
        return "Australia Post API is healthy"


# Shared instance
australia_post_client = AustraliaPostClient()
