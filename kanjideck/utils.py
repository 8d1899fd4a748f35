import io
import os

from PIL import Image, UnidentifiedImageError

from kanjideck.models import PictureAttachment

PICTURE_FILENAME = "pic.jpg"


def load_picture(data: bytes) -> Image.Image:
    """Decode uploaded image bytes.

    Raises:
        ValueError: if Pillow cannot identify the data as an image.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as err:
        raise ValueError(f"Could not decode picture: {err}") from err
    return image


def save_picture(image: Image.Image, directory: str | None = None) -> PictureAttachment:
    """Write `image` as pic.jpg and describe it as an attachment on the front.

    Args:
        image: The picture to persist. Alpha is dropped, JPEG has none.
        directory: Target directory, the current working directory by default.

    Returns:
        A PictureAttachment with an absolute path to the written file.
    """
    directory = os.path.abspath(directory or os.getcwd())
    path = os.path.join(directory, PICTURE_FILENAME)
    image.convert("RGB").save(path, format="JPEG")
    return PictureAttachment(path=path, filename=PICTURE_FILENAME, fields=["Front"])
