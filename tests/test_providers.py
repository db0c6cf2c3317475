#!/usr/bin/env python3
"""
Tests for translation providers.
The Google provider is exercised against httpx.MockTransport, no network needed.
"""

import json

import httpx
import pytest

from fltr.config import TranslateConfig
from fltr.errors import ConfigurationError, TranslationTransportError
from fltr.providers import (
    UNKNOWN_LANGUAGE_NAME,
    EchoTranslationProvider,
    GoogleTranslateProvider,
    build_provider,
)

TRANSLATE_PATH = "/v3/projects/demo/locations/us-central1:translateText"
LANGUAGES_PATH = "/v3/projects/demo/locations/us-central1/supportedLanguages"


def make_provider(handler, **kwargs):
    return GoogleTranslateProvider(
        access_token="token-123",
        project_id="demo",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class Recorder:
    """MockTransport handler that records requests and replies with a fixed response."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)


def test_translate_request_and_response():
    """Test 1: translateText call shape and HTML entity decoding."""
    recorder = Recorder(payload={"translations": [{"translatedText": "L&#39;été &amp; ___0___"}]})
    provider = make_provider(recorder)

    assert provider.translate("Summer & ___0___", "fr") == "L'été & ___0___"

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == TRANSLATE_PATH
    assert request.headers["Authorization"] == "Bearer token-123"
    assert recorder.body == {
        "contents": ["Summer & ___0___"],
        "mimeType": "text/html",
        "sourceLanguageCode": "en",
        "targetLanguageCode": "fr",
    }


def test_non_breaking_spaces_are_normalized():
    """Test 2: &nbsp; in the reply becomes a plain space."""
    recorder = Recorder(payload={"translations": [{"translatedText": "Bonjour&nbsp;!"}]})
    assert make_provider(recorder).translate("Hello!", "fr") == "Bonjour !"


def test_glossary_config():
    """Test 3: glossary translations are preferred when a glossary is set."""
    recorder = Recorder(payload={
        "translations": [{"translatedText": "Navigateur"}],
        "glossaryTranslations": [{"translatedText": "Firefox"}],
    })
    provider = make_provider(recorder, glossary="brands", ignore_case=True)

    assert provider.translate("Firefox", "fr") == "Firefox"
    assert recorder.body["glossaryConfig"] == {
        "glossary": "projects/demo/locations/us-central1/glossaries/brands",
        "ignoreCase": True,
    }


def test_same_locale_is_copied():
    """Test 4: translating into the source locale does not call the service."""
    recorder = Recorder()
    assert make_provider(recorder).translate("Hello", "en") == "Hello"
    assert recorder.requests == []


def test_http_error_message():
    """Test 5: API errors carry the status code and the service message."""
    recorder = Recorder(403, {"error": {"code": 403, "message": "Permission denied"}})
    with pytest.raises(TranslationTransportError) as exc_info:
        make_provider(recorder).translate("Hello", "fr")
    assert exc_info.value.status_code == 403
    assert "Permission denied" in str(exc_info.value)


def test_timeout():
    """Test 6: timeouts become transport errors."""
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TranslationTransportError, match="timeout"):
        make_provider(handler).translate("Hello", "fr")


def test_connection_error():
    """Test 7: connection failures become transport errors."""
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TranslationTransportError, match="refused"):
        make_provider(handler).translate("Hello", "fr")


def test_invalid_json():
    """Test 8: a non-JSON reply is a transport error."""
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(TranslationTransportError, match="invalid JSON"):
        make_provider(handler).translate("Hello", "fr")


def test_empty_translations():
    """Test 9: a reply without translations is a transport error."""
    with pytest.raises(TranslationTransportError, match="no translations"):
        make_provider(Recorder(payload={"translations": []})).translate("Hello", "fr")


def test_available_languages():
    """Test 10: only target-capable languages are listed."""
    recorder = Recorder(payload={"languages": [
        {"languageCode": "fr", "displayName": "French", "supportSource": True, "supportTarget": True},
        {"languageCode": "la", "displayName": "Latin", "supportSource": True, "supportTarget": False},
    ]})
    provider = make_provider(recorder)

    languages = provider.available_languages()

    assert [lang.code for lang in languages] == ["fr"]
    assert languages[0].to_dict() == {"code": "fr", "name": "French", "source": True, "target": True}
    assert recorder.requests[0].url.path == LANGUAGES_PATH
    assert recorder.requests[0].url.params["displayLanguageCode"] == "en"
    assert provider.supports("fr")
    assert not provider.supports("la")


def test_language_name_in_its_own_language():
    """Test 11: the display locale is the target locale itself."""
    recorder = Recorder(payload={"languages": [
        {"languageCode": "de", "displayName": "Deutsch", "supportTarget": True},
    ]})
    assert make_provider(recorder).language_name("de") == "Deutsch"
    assert recorder.requests[0].url.params["displayLanguageCode"] == "de"


def test_language_name_fallback():
    """Test 12: failures and unknown locales give the placeholder name."""
    assert make_provider(Recorder(500, {})).language_name("fr") == UNKNOWN_LANGUAGE_NAME
    assert make_provider(Recorder(payload={"languages": []})).language_name("fr") == UNKNOWN_LANGUAGE_NAME


def test_missing_credentials():
    """Test 13: token and project id are required."""
    with pytest.raises(ConfigurationError, match="access token"):
        GoogleTranslateProvider(access_token="", project_id="demo")
    with pytest.raises(ConfigurationError, match="project id"):
        GoogleTranslateProvider(access_token="t", project_id=None)


def test_echo_provider():
    """Test 14: echo returns its input and lists static languages."""
    with EchoTranslationProvider() as provider:
        assert provider.translate("Hello ___0___", "fr") == "Hello ___0___"
        assert provider.supports("de")
        assert provider.language_name("fr") == "French"


@pytest.mark.parametrize("name, expected", [
    ("echo", EchoTranslationProvider),
    ("MOCK", EchoTranslationProvider),
    ("google", GoogleTranslateProvider),
])
def test_build_provider(name, expected):
    """Test 15: factory picks the provider by name."""
    config = TranslateConfig(provider=name, access_token="t", project_id="p")
    provider = build_provider(config)
    assert isinstance(provider, expected)
    provider.close()


def test_build_provider_unknown():
    """Test 16: unknown provider names are configuration errors."""
    with pytest.raises(ConfigurationError, match="Unknown translation provider"):
        build_provider(TranslateConfig(provider="babelfish"))
