"""
Sensor feed client with resilience patterns
"""
import httpx
from typing import Dict, Any, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from circuitbreaker import circuit
from logging_config import get_logger
from exceptions import ExternalAPIException
from monitoring import track_external_api

logger = get_logger(__name__)


class BaseAPIClient:
    """Base class for API clients with common patterns"""

    def __init__(self, base_url: str, timeout: int = 30, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self.client = None

    async def __aenter__(self):
        """Async context manager entry"""
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.client:
            await self.client.aclose()
            self.client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.RequestError),
        reraise=True
    )
    @circuit(failure_threshold=5, recovery_timeout=60)
    async def _make_request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Make HTTP request with retry and circuit breaker"""
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code}: {e.response.text}")
            raise ExternalAPIException(
                self.__class__.__name__,
                f"HTTP {e.response.status_code}",
                e.response.status_code
            )


class SensorFeedClient(BaseAPIClient):
    """Client for the relay that ESP32/Arduino boards post occupancy to"""

    def __init__(self, base_url: str, timeout: int = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            base_url=base_url.rstrip('/'),
            timeout=timeout,
            transport=transport
        )

    @track_external_api("sensor_feed")
    async def fetch_readings(self) -> Dict[str, Any]:
        """Fetch the latest lotId -> availableSpots mapping"""
        response = await self._make_request("GET", "/api/parking")
        data = response.json()

        if not isinstance(data, dict):
            logger.warning("Unexpected sensor feed response structure")
            return {}

        logger.debug(f"Retrieved {len(data)} sensor readings")
        return data
