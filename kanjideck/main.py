import logging
import time

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from kanjideck.errors import (
    DecodeError,
    EmptyResultError,
    NetworkError,
    PictureSaveError,
    RemoteRejection,
    SynthesisError,
)
from kanjideck.models import AddNoteResult, DeckList
from kanjideck.services.anki_connect import add_note, list_decks
from kanjideck.services.dictionary import DictionaryClient
from kanjideck.services.kanji_lookup import CharacterClient, clean_word
from kanjideck.services.note_builder import create_note
from kanjideck.utils import load_picture

load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_dictionary_client() -> DictionaryClient:
    return DictionaryClient()


def get_character_client() -> CharacterClient:
    return CharacterClient()


@app.get("/api/decks", response_model=DeckList)
def api_decks():
    try:
        return DeckList(decks=list_decks())
    except (NetworkError, DecodeError, RemoteRejection) as err:
        raise HTTPException(
            status_code=502, detail=f"Anki is not connected. Raw error: {err}"
        ) from err


@app.post("/api/notes", response_model=AddNoteResult)
def api_add_note(
    word: str = Form(...),
    sentence: str = Form(""),
    deck_name: str = Form(...),
    file: UploadFile | None = File(None),
    dictionary_client: DictionaryClient = Depends(get_dictionary_client),
    character_client: CharacterClient = Depends(get_character_client),
):
    started = time.perf_counter()
    word = clean_word(word)
    if not word:
        raise HTTPException(status_code=400, detail="No kanji or kana in word")

    try:
        decks = list_decks()
    except (NetworkError, DecodeError, RemoteRejection) as err:
        raise HTTPException(
            status_code=502, detail=f"Anki is not connected. Raw error: {err}"
        ) from err
    if deck_name not in decks:
        raise HTTPException(status_code=400, detail="No deck selected")

    picture = None
    if file is not None:
        try:
            picture = load_picture(file.file.read())
        except ValueError as err:
            raise HTTPException(status_code=400, detail=str(err)) from err

    try:
        note = create_note(
            dictionary_client,
            character_client,
            word,
            sentence,
            deck_name,
            picture=picture,
        )
    except EmptyResultError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    except PictureSaveError as err:
        raise HTTPException(status_code=500, detail=str(err)) from err
    except SynthesisError as err:
        raise HTTPException(status_code=502, detail=str(err)) from err

    try:
        note_id = add_note(note)
    except RemoteRejection as err:
        raise HTTPException(status_code=409, detail=str(err)) from err
    except (NetworkError, DecodeError) as err:
        raise HTTPException(status_code=502, detail=str(err)) from err

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Added word %s to deck %s [%.0f ms]", word, deck_name, elapsed_ms)
    return AddNoteResult(
        note_id=note_id, word=word, deck_name=deck_name, elapsed_ms=elapsed_ms
    )


if __name__ == "__main__":
    uvicorn.run("kanjideck.main:app", host="0.0.0.0", port=8000, reload=True)
