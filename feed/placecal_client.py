"""GraphQL client for PlaceCal partner event feeds."""
import logging
import time
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)

EVENT_FIELDS = (
    'id name summary description startDate endDate repeatFrequency '
    'publisherUrl onlineEventUrl onlineEventUrlType '
    'address { streetAddress postalCode addressLocality }'
)


class FeedError(Exception):
    """Raised when the feed responds with an unusable payload."""


class PlaceCalClient:
    """Client for fetching a partner's events from the PlaceCal API."""

    DEFAULT_ENDPOINT = "https://placecal.org/api/v1/graphql"
    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            endpoint: GraphQL endpoint URL
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.endpoint = endpoint
        self.timeout = timeout

    def fetch_events(self, partner_id: str) -> List[Dict[str, Any]]:
        """
        Fetch raw event records for a partner.

        Args:
            partner_id: PlaceCal partner identifier

        Returns:
            List of event dictionaries as returned by the API

        Raises:
            requests.RequestException: If all retry attempts fail
            FeedError: If the response body is not a usable GraphQL payload
        """
        logger.info(f"Fetching events for partner {partner_id}")

        payload = self._fetch_payload(self.build_query(partner_id))
        events = self._extract_events(payload)

        logger.info(f"Successfully fetched {len(events)} events")
        return events

    def build_query(self, partner_id: str) -> str:
        return f"{{ partner(id: {partner_id}) {{ events {{ {EVENT_FIELDS} }} }} }}"

    def _fetch_payload(self, query: str) -> Dict[str, Any]:
        """
        Run the query with retry logic and decode the JSON body.

        Args:
            query: GraphQL query text

        Returns:
            Decoded response body

        Raises:
            requests.RequestException: If all retry attempts fail
            FeedError: If the body is not JSON
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"Querying feed (attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.get(
                    self.endpoint,
                    params={'query': query},
                    timeout=self.timeout
                )
                response.raise_for_status()
                break

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise

        try:
            return response.json()
        except ValueError as e:
            raise FeedError(f"Feed returned invalid JSON: {e}") from e

    def _extract_events(self, payload: Any) -> List[Dict[str, Any]]:
        """
        Pull the event list out of a GraphQL response.

        Args:
            payload: Decoded response body

        Returns:
            Event dictionaries, empty when the partner has none

        Raises:
            FeedError: If the payload carries errors and no data
        """
        if not isinstance(payload, dict):
            raise FeedError(f"Unexpected feed payload type: {type(payload).__name__}")

        data = payload.get('data')
        if not data and payload.get('errors'):
            messages = [
                error.get('message', str(error)) if isinstance(error, dict) else str(error)
                for error in payload['errors']
            ]
            raise FeedError(f"Feed returned errors: {'; '.join(messages)}")

        partner = (data or {}).get('partner') or {}
        events = partner.get('events') or []
        if not isinstance(events, list):
            raise FeedError("Feed events field is not a list")
        return events
