import bisect
import logging
import os

import httpx
from pydantic import ValidationError

from kanjideck.errors import DecodeError, NetworkError
from kanjideck.models import CharacterEntry

logger = logging.getLogger(__name__)

DEFAULT_KANJI_API_URL = "https://kanjiapi.dev/v1"

# Iteration mark. Unicode files it under Han, but kanjiapi has no entry for it.
ITERATION_MARK = "々"

# Inclusive code point ranges of the Unicode Han script, sorted by start.
_HAN_RANGES = (
    (0x2E80, 0x2E99),
    (0x2E9B, 0x2EF3),
    (0x2F00, 0x2FD5),
    (0x3005, 0x3005),
    (0x3007, 0x3007),
    (0x3021, 0x3029),
    (0x3038, 0x303B),
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFA6D),
    (0xFA70, 0xFAD9),
    (0x16FE2, 0x16FE3),
    (0x16FF0, 0x16FF1),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B739),
    (0x2B740, 0x2B81D),
    (0x2B820, 0x2CEA1),
    (0x2CEB0, 0x2EBE0),
    (0x2EBF0, 0x2EE5D),
    (0x2F800, 0x2FA1D),
    (0x30000, 0x3134A),
    (0x31350, 0x323AF),
)
_HAN_STARTS = [start for start, _ in _HAN_RANGES]

# Inclusive code point ranges of the Hiragana and Katakana scripts. The
# prolonged sound mark (U+30FC) and the kana middle dot are Common script,
# so they are not listed.
_KANA_RANGES = (
    (0x3041, 0x3096),
    (0x309D, 0x309F),
    (0x30A1, 0x30FA),
    (0x30FD, 0x30FF),
    (0x31F0, 0x31FF),
    (0x32D0, 0x32FE),
    (0x3300, 0x3357),
    (0xFF66, 0xFF6F),
    (0xFF71, 0xFF9D),
    (0x1AFF0, 0x1AFF3),
    (0x1AFF5, 0x1AFFB),
    (0x1AFFD, 0x1AFFE),
    (0x1B000, 0x1B122),
    (0x1B132, 0x1B132),
    (0x1B150, 0x1B152),
    (0x1B155, 0x1B155),
    (0x1B164, 0x1B167),
    (0x1F200, 0x1F200),
)
_KANA_STARTS = [start for start, _ in _KANA_RANGES]


def _in_ranges(char: str, ranges, starts) -> bool:
    code = ord(char)
    index = bisect.bisect_right(starts, code) - 1
    return index >= 0 and code <= ranges[index][1]


def is_kanji(char: str) -> bool:
    """True if the single character `char` belongs to the Han script."""
    return _in_ranges(char, _HAN_RANGES, _HAN_STARTS)


def is_kana(char: str) -> bool:
    """True if `char` belongs to the Hiragana or Katakana script."""
    return _in_ranges(char, _KANA_RANGES, _KANA_STARTS)


def clean_word(word: str) -> str:
    """Strip user input down to its kanji and kana.

    Whitespace, punctuation, latin text and the prolonged sound mark are all
    dropped; the iteration mark stays.
    """
    return "".join(ch for ch in word if is_kanji(ch) or is_kana(ch))


def normalize(word: str) -> str:
    """Keep only the kanji of `word`, in order, duplicates included."""
    return "".join(ch for ch in word if ch != ITERATION_MARK and is_kanji(ch))


class CharacterClient:
    """Per-character lookups against kanjiapi.dev."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (
            base_url or os.environ.get("KANJI_API_URL", DEFAULT_KANJI_API_URL)
        ).rstrip("/")
        self.transport = transport

    def normalize(self, word: str) -> str:
        return normalize(word)

    async def fetch(self, character: str) -> CharacterEntry:
        if len(character) != 1:
            raise ValueError(f"Expected a single character, got {character!r}")

        url = f"{self.base_url}/kanji/{character}"
        logger.debug("kanjiapi lookup: %s", character)

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=None) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise NetworkError(
                f"kanjiapi error (status {err.response.status_code}): {err}"
            ) from err
        except httpx.RequestError as err:
            raise NetworkError(f"kanjiapi request failed for {character!r}: {err}") from err

        try:
            return CharacterEntry.model_validate_json(response.content)
        except ValidationError as err:
            raise DecodeError(
                f"kanjiapi returned an unexpected body for {character!r}: {err}"
            ) from err
