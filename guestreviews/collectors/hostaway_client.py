import json, logging, os
from pathlib import Path
from typing import Dict, Optional
import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.hostaway.com/v1"
DEFAULT_FIXTURE_PATH = Path(__file__).resolve().parents[2] / "data" / "hostaway_mock_reviews.json"


class HostawaySourceError(Exception):
    pass


class HostawayConfigError(HostawaySourceError):
    pass


class HostawayAPIError(HostawaySourceError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body[:200]
        super().__init__(f"Hostaway API request failed ({status_code}): {self.body}")


class HostawayFetchError(HostawaySourceError):
    pass


class HostawayClient:
    """Single-attempt client for the Hostaway reviews endpoint."""

    def __init__(self, account_id: Optional[str] = None, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: float = 15):
        self.account_id = account_id if account_id is not None else os.getenv("HOSTAWAY_ACCOUNT_ID")
        self.api_key = api_key if api_key is not None else os.getenv("HOSTAWAY_API_KEY")
        self.base_url = (base_url or os.getenv("HOSTAWAY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    def fetch(self) -> Dict:
        if not self.account_id or not self.api_key:
            raise HostawayConfigError("Hostaway credentials are not configured.")
        url = f"{self.base_url}/reviews"
        try:
            r = requests.get(
                url,
                params={"accountId": self.account_id},
                headers={"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HostawayFetchError(f"Unable to reach Hostaway API: {e}") from e
        if not r.ok:
            raise HostawayAPIError(r.status_code, r.text or "")
        try:
            data = r.json()
        except ValueError as e:
            raise HostawayFetchError(f"Hostaway API returned invalid JSON: {e}") from e
        n = len(data.get("result") or []) if isinstance(data, dict) else 0
        logger.info("Fetched %d Hostaway reviews for account %s", n, self.account_id)
        return data


def fixture_path() -> Path:
    return Path(os.getenv("HOSTAWAY_FIXTURE_PATH") or DEFAULT_FIXTURE_PATH)


def load_mock_payload(path: Optional[Path] = None) -> Dict:
    p = Path(path) if path else fixture_path()
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    logger.debug("Loaded Hostaway fixture from %s", p)
    return data
