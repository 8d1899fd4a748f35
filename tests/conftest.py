"""Pytest configuration and shared fixtures."""

import asyncio
import io
import json
from unittest.mock import Mock
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from kanjideck.models import Note
from kanjideck.services.dictionary import DictionaryClient
from kanjideck.services.kanji_lookup import CharacterClient

NEKO_DICTIONARY = {
    "meta": {"status": 200},
    "data": [
        {
            "slug": "猫",
            "is_common": True,
            "japanese": [{"word": "猫", "reading": "ねこ"}],
            "senses": [
                {
                    "english_definitions": ["cat"],
                    "parts_of_speech": ["Noun"],
                    "info": [],
                }
            ],
        }
    ],
}

KANJI_ENTRIES = {
    "猫": {
        "kanji": "猫",
        "grade": 8,
        "meanings": ["cat"],
        "kun_readings": ["ねこ"],
        "on_readings": [],
        "name_readings": [],
    },
    "子": {
        "kanji": "子",
        "grade": 1,
        "meanings": ["child", "sign of the rat"],
        "kun_readings": ["こ", "-こ"],
        "on_readings": ["シ", "ス"],
        "name_readings": ["ね"],
    },
    "人": {
        "kanji": "人",
        "grade": 1,
        "meanings": ["person"],
        "kun_readings": ["ひと"],
        "on_readings": ["ジン", "ニン"],
        "name_readings": ["と", "ひこ"],
    },
}


class FakeLookupServices:
    """In-memory Jisho and kanjiapi behind httpx.MockTransport.

    `dictionary_error` / `kanji_errors` hold either an int status code or an
    exception to raise. `delays` slows individual kanji down so tests can
    control completion order.
    """

    def __init__(self):
        self.dictionary_payload = NEKO_DICTIONARY
        self.kanji_payloads = dict(KANJI_ENTRIES)
        self.dictionary_error = None
        self.kanji_errors = {}
        self.delays = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handler)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.path)

        if path.endswith("/search/words"):
            return self._respond(self.dictionary_error, self.dictionary_payload)

        character = path.rsplit("/", 1)[-1]
        await asyncio.sleep(self.delays.get(character, 0))
        return self._respond(
            self.kanji_errors.get(character), self.kanji_payloads.get(character)
        )

    @staticmethod
    def _respond(error, payload) -> httpx.Response:
        if isinstance(error, Exception):
            raise error
        if isinstance(error, int):
            return httpx.Response(error, json={"error": "failed"})
        if payload is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=payload)

    def kanji_requests(self) -> list[str]:
        return [
            unquote(r.url.path).rsplit("/", 1)[-1]
            for r in self.requests
            if "/kanji/" in unquote(r.url.path)
        ]

    def dictionary_requests(self) -> list[str]:
        return [
            r.url.params["keyword"]
            for r in self.requests
            if unquote(r.url.path).endswith("/search/words")
        ]


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch):
    """Set test environment variables for all tests."""
    monkeypatch.setenv("ANKI_CONNECT_URL", "http://test-anki:8765")
    monkeypatch.setenv("JISHO_API_URL", "http://test-jisho/api/v1")
    monkeypatch.setenv("KANJI_API_URL", "http://test-kanji/v1")


@pytest.fixture
def lookup_services():
    """Fake upstream lookup services."""
    return FakeLookupServices()


@pytest.fixture
def dictionary_client(lookup_services):
    return DictionaryClient(transport=lookup_services.transport)


@pytest.fixture
def character_client(lookup_services):
    return CharacterClient(transport=lookup_services.transport)


@pytest.fixture
def sample_note():
    """Note without a picture."""
    return Note(
        front="猫<br><br>猫が好き<br><br>",
        back="猫【ねこ】 <br><br>",
        deck_name="Japanese",
    )


@pytest.fixture
def sample_image():
    """Small RGBA image, like a clipboard capture."""
    return Image.new("RGBA", (40, 30), color=(255, 0, 0, 128))


@pytest.fixture
def sample_image_bytes(sample_image):
    """The sample image encoded as PNG."""
    buf = io.BytesIO()
    sample_image.save(buf, format="PNG")
    return buf.getvalue()


def _anki_response(result=None, error=None):
    mock_response = Mock()
    mock_response.read.return_value = json.dumps(
        {"result": result, "error": error}
    ).encode()
    mock_response.__enter__ = Mock(return_value=mock_response)
    mock_response.__exit__ = Mock(return_value=False)
    return mock_response


@pytest.fixture
def mock_anki_connect(monkeypatch):
    """Mock AnkiConnect HTTP requests.

    Returns a dict with the canned `responses` and the decoded request
    `bodies` in the order they were sent.
    """
    state = {
        "responses": {
            "deckNames": ["Default", "Japanese"],
            "addNote": 1496198395707,
        },
        "errors": {},
        "bodies": [],
    }

    def mock_urlopen(request):
        body = json.loads(request.data.decode())
        state["bodies"].append(body)
        action = body.get("action")
        return _anki_response(
            state["responses"].get(action), state["errors"].get(action)
        )

    monkeypatch.setattr("urllib.request.urlopen", mock_urlopen)

    return state


@pytest.fixture
def test_client(lookup_services):
    """FastAPI TestClient wired to the fake lookup services."""
    from kanjideck.main import app, get_character_client, get_dictionary_client

    app.dependency_overrides[get_dictionary_client] = lambda: DictionaryClient(
        transport=lookup_services.transport
    )
    app.dependency_overrides[get_character_client] = lambda: CharacterClient(
        transport=lookup_services.transport
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
