# scraper/errors.py

from enum import Enum


class ErrorKind(Enum):
    TRANSPORT = 'transport'    # DNS / connect / timeout / HTTP status
    EXTRACTION = 'extraction'  # expected markup absent, bad number or date
    STORE = 'store'            # lost connection or failed query
    LOGIC = 'logic'            # cache miss on a place that should be seeded


class ScrapeError(Exception):
    """
    Every failure the scraper knows how to recover from.
    The scheduler matches on `kind` once, at the loop boundary.
    """

    kind = ErrorKind.LOGIC

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def __str__(self):
        return f"[{self.kind.value}] {super().__str__()}"


class TransportError(ScrapeError):
    kind = ErrorKind.TRANSPORT


class ExtractionError(ScrapeError):
    kind = ErrorKind.EXTRACTION


class StoreError(ScrapeError):
    kind = ErrorKind.STORE


class LogicError(ScrapeError):
    kind = ErrorKind.LOGIC
