"""HTTP client for the Google Maps web services and short-link redirects."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ...config import settings
from ..context import CallContext
from ..errors import CallBudgetExceeded, ProviderResponseError, ProviderUnavailableError

logger = logging.getLogger(__name__)

# Short-link redirect targets differ by user agent; present as a browser.
DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Accept-Language": "es-BO,es;q=0.9,en;q=0.8",
}


class GoogleMapsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        connect_timeout: float | None = None,
        redirect_timeout: float | None = None,
        timeout_retries: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.base_url = (base_url or settings.maps_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.connect_timeout_seconds
        )
        self.redirect_timeout = (
            redirect_timeout if redirect_timeout is not None else settings.redirect_timeout_seconds
        )
        self.timeout_retries = timeout_retries if timeout_retries is not None else settings.timeout_retries
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self, timeout: float) -> httpx.Client:
        """Fresh client per call so every external call carries its own timeout."""
        return httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(self.connect_timeout, timeout)),
            headers=DEFAULT_HEADERS,
            transport=self._transport,
        )

    def _request_json(self, endpoint: str, params: dict, context: CallContext) -> dict:
        if not self.api_key:
            raise ProviderResponseError("Google Maps API key is not configured.")

        url = f"{self.base_url}/{endpoint}/json"
        query = {**params, "key": self.api_key}
        attempt = 0
        while True:
            context.spend(endpoint)
            client = self._get_client(self.timeout)
            try:
                response = client.get(url, params=query)
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ProviderResponseError(f"Unexpected {endpoint} payload type: {type(data).__name__}")
                return data
            except httpx.HTTPStatusError as e:
                raise ProviderResponseError(
                    f"{endpoint} request failed with HTTP {e.response.status_code}"
                ) from e
            except httpx.TimeoutException as e:
                attempt += 1
                if attempt > self.timeout_retries:
                    logger.warning(f"{endpoint} request timed out after {attempt} attempt(s): {e}")
                    raise ProviderUnavailableError(
                        f"Google Maps {endpoint} did not answer within {self.timeout:.0f}s.", timed_out=True
                    ) from e
                logger.debug(f"{endpoint} request timeout, retrying (attempt {attempt}/{self.timeout_retries})")
            except httpx.RequestError as e:
                # DNS failures, refused connections and broken sockets are not retried.
                raise ProviderUnavailableError(f"Failed to connect to Google Maps {endpoint}: {e}") from e
            except ValueError as e:
                raise ProviderResponseError(f"{endpoint} returned a body that is not JSON") from e
            finally:
                client.close()

    def directions(self, origin: str, destination: str, context: CallContext) -> dict:
        """Door-to-door driving directions with alternatives enabled."""
        params = {
            "origin": origin,
            "destination": destination,
            "mode": "driving",
            "alternatives": "true",
            "departure_time": "now",
            "traffic_model": "best_guess",
        }
        return self._request_json("directions", params, context)

    def distance_matrix(self, origin: str, destination: str, context: CallContext) -> dict:
        """Single origin/destination pair from the Distance Matrix endpoint."""
        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "driving",
            "units": "metric",
        }
        return self._request_json("distancematrix", params, context)

    def geocode(self, address: str, context: CallContext) -> dict:
        return self._request_json("geocode", {"address": address}, context)

    def place_details(self, place_id: str, context: CallContext) -> dict:
        return self._request_json("place/details", {"place_id": place_id, "fields": "geometry"}, context)

    def follow_redirect(self, url: str, context: CallContext) -> Optional[str]:
        """Resolve one redirect hop without following it.

        Returns the absolute redirect target, or None when the response is not
        a redirect. Only the status line and headers are read.
        """
        attempt = 0
        while True:
            context.spend("redirect")
            client = self._get_client(self.redirect_timeout)
            try:
                with client.stream("GET", url, follow_redirects=False) as response:
                    if not response.is_redirect:
                        logger.debug(f"No redirect from {url} (HTTP {response.status_code})")
                        return None
                    return str(response.url.join(response.headers["location"]))
            except httpx.TimeoutException as e:
                attempt += 1
                if attempt > self.timeout_retries:
                    raise ProviderUnavailableError(f"Redirect lookup timed out for {url}", timed_out=True) from e
                logger.debug(f"Redirect lookup timeout, retrying (attempt {attempt}/{self.timeout_retries})")
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ProviderUnavailableError(f"Redirect lookup failed for {url}: {e}") from e
            finally:
                client.close()


def check_health(client: GoogleMapsClient | None = None) -> bool:
    """Check provider health with a single geocode of a well-known place."""
    maps_client = client or GoogleMapsClient()
    if not maps_client.configured:
        return False
    try:
        data = maps_client.geocode("Plaza 14 de Septiembre, Cochabamba, Bolivia", CallContext(max_calls=2))
        return data.get("status") == "OK"
    except (ProviderUnavailableError, ProviderResponseError, CallBudgetExceeded):
        return False
