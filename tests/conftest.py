"""Shared fixtures: fake translation providers."""

import threading

import pytest

from fltr.errors import TranslationTransportError
from fltr.providers import Language, TranslationProvider


class FakeProvider(TranslationProvider):
    """
    Dictionary-backed provider.

    Known texts are translated from the table, unknown ones are returned
    with a "FR:" prefix. Every call is recorded.
    """

    def __init__(self, table=None, languages=None):
        self.table = table or {}
        if languages is None:
            languages = [Language("fr", "français"), Language("de", "Deutsch")]
        self.languages = languages
        self.calls = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "fake"

    def translate(self, text: str, target_locale: str) -> str:
        with self._lock:
            self.calls.append(text)
        return self.table.get(text, f"FR:{text}")

    def available_languages(self, display_locale: str = "en"):
        return list(self.languages)


class ScriptedProvider(FakeProvider):
    """Replays a list of replies; exceptions in the list are raised."""

    def __init__(self, replies):
        super().__init__()
        self.replies = list(replies)

    def translate(self, text: str, target_locale: str) -> str:
        with self._lock:
            self.calls.append(text)
            reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_provider():
    return FakeProvider({
        "Hello, ___0___!": "Bonjour, ___0___!",
        "___0___ added ___1___ new photos.": "___0___ ajouté ___1___ nouvelles photos.",
    })


@pytest.fixture
def transport_error():
    return TranslationTransportError("connection reset")
