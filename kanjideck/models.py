from pydantic import BaseModel

MODEL_NAME = "Basic"
PROVENANCE_TAG = "kanjideck"


class JapaneseForm(BaseModel):
    word: str | None = None
    reading: str | None = None


class Sense(BaseModel):
    english_definitions: list[str]
    parts_of_speech: list[str]
    info: list[str]


class DictionaryEntry(BaseModel):
    senses: list[Sense]
    japanese: list[JapaneseForm]


class DictionaryResponse(BaseModel):
    data: list[DictionaryEntry]


class CharacterEntry(BaseModel):
    kanji: str
    meanings: list[str]
    kun_readings: list[str]
    on_readings: list[str]
    name_readings: list[str]


class PictureAttachment(BaseModel):
    path: str
    filename: str
    fields: list[str] = ["Front"]


class Note(BaseModel):
    front: str
    back: str
    deck_name: str
    model_name: str = MODEL_NAME
    tags: list[str] = [PROVENANCE_TAG]
    allow_duplicate: bool = False
    duplicate_scope: str = "deck"
    picture: PictureAttachment | None = None


class DeckList(BaseModel):
    decks: list[str]


class AddNoteResult(BaseModel):
    note_id: int
    word: str
    deck_name: str
    elapsed_ms: float
