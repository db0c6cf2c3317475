#!/usr/bin/env python3
"""
Translation providers.

A provider is the external translate capability: plain text in, plain text
out, for one target locale. It also lists the locales it supports.

Providers:
- google: Google Cloud Translation v3 REST API (bearer token + project id)
- echo: returns the input unchanged, for dry runs and tests
"""

import html
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import TranslateConfig
from .errors import ConfigurationError, TranslationTransportError
from .logger import get_logger

logger = get_logger(__name__)

UNKNOWN_LANGUAGE_NAME = "<INSERT LANGUAGE NAME HERE>"

# Used by providers without a language listing endpoint
STATIC_LANGUAGES = {
    'ar': 'Arabic',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'fi': 'Finnish',
    'fr': 'French',
    'he': 'Hebrew',
    'hi': 'Hindi',
    'hu': 'Hungarian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sv': 'Swedish',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'zh-CN': 'Chinese (Simplified)',
    'zh-TW': 'Chinese (Traditional)',
}


@dataclass(frozen=True)
class Language:
    """A locale supported by a provider."""
    code: str
    display_name: str
    support_source: bool = True
    support_target: bool = True

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.display_name,
            "source": self.support_source,
            "target": self.support_target,
        }


class TranslationProvider(ABC):
    """Abstract translate capability."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def translate(self, text: str, target_locale: str) -> str:
        """
        Translate plain text.

        Raises:
            TranslationTransportError: On network, auth or response errors
        """
        pass

    @abstractmethod
    def available_languages(self, display_locale: str = "en") -> list[Language]:
        """Locales usable as translation targets, named in display_locale."""
        pass

    def language_name(self, locale: str) -> str:
        """Display name of a locale in that locale itself."""
        try:
            languages = self.available_languages(display_locale=locale)
        except TranslationTransportError as e:
            logger.warning(f"Failed to get language name for '{locale}': {e}")
            return UNKNOWN_LANGUAGE_NAME
        for language in languages:
            if language.code == locale:
                return language.display_name
        return UNKNOWN_LANGUAGE_NAME

    def supports(self, locale: str) -> bool:
        return any(lang.code == locale for lang in self.available_languages())

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class EchoTranslationProvider(TranslationProvider):
    """Returns the original text (useful for dry runs and testing)."""

    @property
    def name(self) -> str:
        return "echo"

    def translate(self, text: str, target_locale: str) -> str:
        return text

    def available_languages(self, display_locale: str = "en") -> list[Language]:
        return [Language(code, name) for code, name in STATIC_LANGUAGES.items()]


def get_httpx_timeout(timeout: float) -> httpx.Timeout:
    """Per-call timeout: the read budget is the configured value."""
    return httpx.Timeout(connect=10.0, write=timeout, read=timeout, pool=10.0)


class GoogleTranslateProvider(TranslationProvider):
    """
    Google Cloud Translation v3 over REST.

    Text is sent as text/html (so the service leaves sentinel tokens and
    whitespace alone) and HTML entities in the reply are decoded.
    """

    BASE_URL = "https://translation.googleapis.com/v3"

    def __init__(
        self,
        access_token: str,
        project_id: str,
        source_locale: str = "en",
        location: str = "us-central1",
        glossary: Optional[str] = None,
        ignore_case: bool = False,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not access_token:
            raise ConfigurationError(
                "Google access token missing. Set FLTR_ACCESS_TOKEN or access_token in fltr.yaml "
                "(e.g. from `gcloud auth print-access-token`)."
            )
        if not project_id:
            raise ConfigurationError(
                "Google project id missing. Set FLTR_PROJECT_ID or project_id in fltr.yaml."
            )

        self.project_id = project_id
        self.source_locale = source_locale
        self.location = location
        self.glossary = glossary
        self.ignore_case = ignore_case
        self._client = httpx.Client(
            base_url=self.BASE_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=get_httpx_timeout(timeout),
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "google"

    @property
    def _parent(self) -> str:
        return f"projects/{self.project_id}/locations/{self.location}"

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_text = e.response.text[:500]
            try:
                error_json = e.response.json()
            except ValueError:
                error_json = None
            if isinstance(error_json, dict) and isinstance(error_json.get("error"), dict):
                error_text = error_json["error"].get("message", error_text)
            raise TranslationTransportError(
                f"Google Translate API error ({status_code}): {error_text}",
                status_code=status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise TranslationTransportError("Google Translate API request timeout") from e
        except httpx.HTTPError as e:
            raise TranslationTransportError(f"Google Translate API call failed: {e}") from e
        except ValueError as e:
            raise TranslationTransportError(f"Google Translate API returned invalid JSON: {e}") from e

    def translate(self, text: str, target_locale: str) -> str:
        # same language: copy over
        if target_locale == self.source_locale:
            return text

        body = {
            "contents": [text],
            "mimeType": "text/html",
            "sourceLanguageCode": self.source_locale,
            "targetLanguageCode": target_locale,
        }
        if self.glossary:
            body["glossaryConfig"] = {
                "glossary": f"{self._parent}/glossaries/{self.glossary}",
                "ignoreCase": self.ignore_case,
            }

        result = self._request("POST", f"/{self._parent}:translateText", json=body)

        translations = result.get("glossaryTranslations") or result.get("translations") or []
        if not translations:
            raise TranslationTransportError("Google Translate API returned no translations")

        translated = translations[-1].get("translatedText", "")
        return html.unescape(translated).replace("\u00a0", " ")

    def available_languages(self, display_locale: str = "en") -> list[Language]:
        result = self._request(
            "GET",
            f"/{self._parent}/supportedLanguages",
            params={"displayLanguageCode": display_locale},
        )
        return [
            Language(
                code=lang.get("languageCode", ""),
                display_name=lang.get("displayName", ""),
                support_source=lang.get("supportSource", False),
                support_target=lang.get("supportTarget", False),
            )
            for lang in result.get("languages", [])
            if lang.get("supportTarget")
        ]

    def close(self) -> None:
        self._client.close()


def build_provider(config: TranslateConfig) -> TranslationProvider:
    """Factory to create the configured provider."""
    normalized = (config.provider or "google").strip().lower()
    if normalized in {"google", "gcp", "default"}:
        return GoogleTranslateProvider(
            access_token=config.access_token,
            project_id=config.project_id,
            source_locale=config.source_locale,
            location=config.location,
            glossary=config.glossary,
            ignore_case=config.ignore_case,
            timeout=config.timeout,
        )
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    raise ConfigurationError(f"Unknown translation provider '{config.provider}'. Available: google, echo")
