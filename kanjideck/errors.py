class CardError(RuntimeError):
    """Base class for every failure the card pipeline reports."""


class NetworkError(CardError):
    """The request never produced a usable HTTP response."""


class DecodeError(CardError):
    """The response body did not match the expected shape."""


class RemoteRejection(CardError):
    """AnkiConnect answered, but its envelope carried an error."""


class SynthesisError(CardError):
    """Building a note failed. The upstream exception, if any, is chained."""


class EmptyResultError(SynthesisError):
    pass


class PictureSaveError(SynthesisError):
    pass
