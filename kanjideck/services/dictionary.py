import logging
import os

import httpx
from pydantic import ValidationError

from kanjideck.errors import DecodeError, NetworkError
from kanjideck.models import DictionaryEntry, DictionaryResponse

logger = logging.getLogger(__name__)

DEFAULT_JISHO_API_URL = "https://jisho.org/api/v1"


class DictionaryClient:
    """Word lookups against the Jisho search API."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (
            base_url or os.environ.get("JISHO_API_URL", DEFAULT_JISHO_API_URL)
        ).rstrip("/")
        self.transport = transport

    async def fetch(self, word: str) -> list[DictionaryEntry]:
        """Return every entry Jisho has for `word`, in response order."""
        url = f"{self.base_url}/search/words"
        logger.debug("Jisho lookup: %s", word)

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=None) as client:
                response = await client.get(url, params={"keyword": word})
                response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise NetworkError(
                f"Jisho API error (status {err.response.status_code}): {err}"
            ) from err
        except httpx.RequestError as err:
            raise NetworkError(f"Jisho request failed for {word!r}: {err}") from err

        try:
            return DictionaryResponse.model_validate_json(response.content).data
        except ValidationError as err:
            raise DecodeError(f"Jisho returned an unexpected body for {word!r}: {err}") from err
