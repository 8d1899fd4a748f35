import asyncio
import logging

from PIL import Image

from kanjideck.errors import EmptyResultError, PictureSaveError, SynthesisError
from kanjideck.models import CharacterEntry, DictionaryEntry, Note
from kanjideck.services.dictionary import DictionaryClient
from kanjideck.services.kanji_lookup import CharacterClient
from kanjideck.utils import save_picture

logger = logging.getLogger(__name__)

SEP = ", "
BR = "<br>"


def render_front(word: str, sentence: str) -> str:
    return f"{word}{BR}{BR}{sentence}{BR}{BR}"


def render_back(entry: DictionaryEntry, characters: list[CharacterEntry]) -> str:
    """Readings, then senses, then one block per kanji in word order."""
    back = ""
    for form in entry.japanese:
        back += f"{form.word or ''}【{form.reading or ''}】 "
    back += BR + BR

    for sense in entry.senses:
        speech = SEP.join(sense.parts_of_speech)
        # Checked against everything written so far, not only earlier tag lines.
        if speech not in back:
            back += speech + BR
        back += f"• {SEP.join(sense.english_definitions)} {SEP.join(sense.info)}{BR}"
    back += BR

    for character in characters:
        back += character.kanji + BR
        back += SEP.join(character.meanings) + BR
        back += f"Kun: {SEP.join(character.kun_readings)}{BR}"
        back += f"On: {SEP.join(character.on_readings)}{BR}"
        back += f"Name: {SEP.join(character.name_readings)}{BR}"
        back += BR
    return back


async def build_note(
    dictionary_client: DictionaryClient,
    character_client: CharacterClient,
    word: str,
    sentence: str,
    deck_name: str,
    picture: Image.Image | None = None,
) -> Note:
    """Look up `word` on both services and merge the results into a Note.

    One dictionary request and one request per kanji run concurrently and are
    all awaited before any result is looked at. The dictionary failure wins
    over any character failure; among characters the earliest one in the word
    wins.

    Raises:
        SynthesisError: an upstream call failed, chained to the cause.
        EmptyResultError: the dictionary had no entry for `word`.
        PictureSaveError: the picture could not be written to disk.
    """
    kanji = character_client.normalize(word)
    dictionary_result, *character_results = await asyncio.gather(
        dictionary_client.fetch(word),
        *(character_client.fetch(ch) for ch in kanji),
        return_exceptions=True,
    )

    if isinstance(dictionary_result, Exception):
        logger.warning("Dictionary lookup failed for %s: %s", word, dictionary_result)
        raise SynthesisError(
            f"error calling dictionary service: {dictionary_result}"
        ) from dictionary_result
    if not dictionary_result:
        raise EmptyResultError(
            f"No data found for {word!r}. Try again with something else."
        )

    for ch, result in zip(kanji, character_results):
        if isinstance(result, Exception):
            logger.warning("Character lookup failed for %s: %s", ch, result)
            raise SynthesisError(f"error calling character service: {result}") from result

    note = Note(
        front=render_front(word, sentence),
        back=render_back(dictionary_result[0], character_results),
        deck_name=deck_name,
    )

    if picture is not None:
        try:
            note.picture = save_picture(picture)
        except (OSError, ValueError) as err:
            raise PictureSaveError(f"Error saving picture: {err}") from err

    return note


def create_note(
    dictionary_client: DictionaryClient,
    character_client: CharacterClient,
    word: str,
    sentence: str,
    deck_name: str,
    picture: Image.Image | None = None,
) -> Note:
    """Blocking wrapper around build_note for synchronous callers."""
    return asyncio.run(
        build_note(
            dictionary_client,
            character_client,
            word,
            sentence,
            deck_name,
            picture=picture,
        )
    )
