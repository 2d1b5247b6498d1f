"""Remote lookups: external place metadata and per-server health endpoints."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)


class PlaceMetadataFetcher:
    """Fetches place metadata, retrying transient failures with backoff."""

    def __init__(
        self,
        url_template: str,
        retries: int = 3,
        backoff_base: float = 2.0,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the fetcher.

        Args:
            url_template: URL with a ``{place_id}`` placeholder
            retries: Retries after the first attempt
            backoff_base: Delay before retry n is ``backoff_base ** n`` seconds
            timeout: Per-request timeout in seconds
            session: Optional preconfigured HTTP session
            sleep: Sleep function, replaceable in tests
        """
        self.url_template = url_template
        self.retries = retries
        self.backoff_base = backoff_base
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self._sleep = sleep

    def fetch(self, place_id: int) -> dict[str, Any] | None:
        """Fetch metadata for a place.

        Args:
            place_id: External place identifier

        Returns:
            Metadata mapping, or None when the place is unavailable
        """
        url = self.url_template.format(place_id=place_id)
        attempt = 0
        while True:
            try:
                logger.debug(f'[place-fetch] place={place_id} url={url} attempt={attempt + 1}')
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    logger.error(f'[place-fetch] place={place_id} unexpected payload type={type(data).__name__}')
                    return None
                return data
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status is not None and status < 500:
                    logger.info(f'[place-fetch] place={place_id} status={status} not retried')
                    return None
                error = e
            except (requests.ConnectionError, requests.Timeout) as e:
                error = e
            except requests.RequestException as e:
                logger.error(f'[place-fetch] place={place_id} url={url} error={e}')
                return None
            except ValueError as e:
                logger.error(f'[place-fetch] place={place_id} invalid JSON: {e}')
                return None

            attempt += 1
            if attempt > self.retries:
                logger.error(
                    f'[place-fetch] place={place_id} url={url} giving up after {self.retries} retries: {error}'
                )
                return None
            delay = self.backoff_base ** attempt
            logger.warning(f'[place-retry] place={place_id} attempt={attempt} delay={delay}s error={error}')
            self._sleep(delay)


class HealthProbe:
    """Reads the ``/health`` document a game server exposes."""

    def __init__(self, timeout: float = 5.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def probe(self, ip: str, port: int) -> dict[str, Any] | None:
        url = f'http://{ip}:{port}/health'
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning(f'[health] url={url} error={e}')
            return None
        except ValueError as e:
            logger.warning(f'[health] url={url} invalid JSON: {e}')
            return None
