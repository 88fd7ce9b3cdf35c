from typing import Iterable, Tuple


DEFAULT_VOCABULARY: Tuple[str, ...] = (
    "http://",
    "https://",
    "ftp://",
    "file://",
    "www.",
    ".com",
    ".org",
    ".net",
    ".io",
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "true",
    "false",
    "null",
    "undefined",
    "version",
    "v1.0",
    "v2.0",
    "latest",
)


class VocabularyFilter:
    """
    Read-only list of common non-secret substrings.

    A token containing any entry (case-insensitive) is dropped before entropy scoring.
    This only reduces noise; it is not a security boundary.
    """

    def __init__(self, entries: Iterable[str] = DEFAULT_VOCABULARY):
        self._entries: Tuple[str, ...] = tuple(e.lower() for e in entries if e)

    @property
    def entries(self) -> Tuple[str, ...]:
        return self._entries

    def is_common(self, token: str) -> bool:
        lowered = token.lower()
        return any(entry in lowered for entry in self._entries)

    def extended(self, entries: Iterable[str]) -> "VocabularyFilter":
        return VocabularyFilter(self._entries + tuple(entries))
