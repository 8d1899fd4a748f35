import json
import logging
import os
import urllib.error
import urllib.request

from kanjideck.errors import DecodeError, NetworkError, RemoteRejection
from kanjideck.models import Note

logger = logging.getLogger(__name__)

DEFAULT_ANKI_CONNECT_URL = "http://localhost:8765"
ANKI_CONNECT_VERSION = 6


def _anki_request(action: str, **params):
    """Send one action to AnkiConnect and return its `result`."""
    request_body = {"action": action, "version": ANKI_CONNECT_VERSION}
    if params:
        request_body["params"] = params
    payload = json.dumps(request_body).encode()
    url = os.environ.get("ANKI_CONNECT_URL", DEFAULT_ANKI_CONNECT_URL)
    logger.debug("AnkiConnect %s -> %s", action, url)
    req = urllib.request.Request(url, data=payload)
    req.add_header("Content-Type", "application/json")

    try:
        with urllib.request.urlopen(req) as resp:
            raw = resp.read()
    except (urllib.error.URLError, OSError) as err:
        raise NetworkError(f"Anki is not connected ({url}): {err}") from err

    try:
        body = json.loads(raw)
    except json.JSONDecodeError as err:
        raise DecodeError(f"AnkiConnect returned invalid JSON: {err}") from err
    if not isinstance(body, dict):
        raise DecodeError(f"AnkiConnect returned an unexpected envelope: {body!r}")
    if body.get("error") is not None:
        raise RemoteRejection(f"AnkiConnect error: {body['error']}")
    if "result" not in body:
        raise DecodeError(f"AnkiConnect response has no result: {body!r}")
    return body["result"]


def note_params(note: Note) -> dict:
    """Translate a Note into the `note` object of an addNote request."""
    params = {
        "deckName": note.deck_name,
        "modelName": note.model_name,
        "fields": {
            "Front": note.front,
            "Back": note.back,
        },
        "options": {
            "allowDuplicate": note.allow_duplicate,
            "duplicateScope": note.duplicate_scope,
        },
        "tags": list(note.tags),
    }
    if note.picture is not None:
        params["picture"] = [
            {
                "path": note.picture.path,
                "filename": note.picture.filename,
                "fields": list(note.picture.fields),
            }
        ]
    return params


def list_decks() -> list[str]:
    """Return the deck names Anki currently knows about."""
    decks = _anki_request("deckNames")
    if not isinstance(decks, list) or not all(isinstance(d, str) for d in decks):
        raise DecodeError(f"deckNames returned a non-list result: {decks!r}")
    return decks


def add_note(note: Note) -> int:
    """Post `note` to Anki. Returns the id Anki assigned to it."""
    note_id = _anki_request("addNote", note=note_params(note))
    if isinstance(note_id, bool) or not isinstance(note_id, int):
        raise DecodeError(f"addNote returned a non-numeric result: {note_id!r}")
    return note_id
