"""
Google Translate web endpoint translator.

Uses the keyless ``translate_a/single?client=gtx`` endpoint. It is free but
rate limited and undocumented, which is why callers batch requests, pace
them, and treat any failure as "try again next run".

For production use, prefer the official Google Cloud Translation API.
"""

from __future__ import annotations

import logging

import requests

from lokma_i18n.errors import TranslationEndpointError
from lokma_i18n.translate.base import Translator, TranslationResult

logger = logging.getLogger(__name__)


class GoogleFreeTranslator(Translator):
    """Free Google Translate via the public web endpoint.

    Usage:
        translator = GoogleFreeTranslator()
        result = translator.translate("Siparişlerim", "tr", "en")
    """

    ENDPOINT = "https://translate.googleapis.com/translate_a/single"

    def __init__(self, timeout: float = 10.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return "google-free"

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        """Translate text; the response is a list of segment arrays.

        The payload looks like ``[[["Hello\\n", "Merhaba\\n", ...], ...], ...]``;
        translated pieces are ``data[0][i][0]`` and concatenate to the full
        translation with the original newlines preserved.
        """
        params = {
            "client": "gtx",
            "sl": self._normalize_lang(source_lang),
            "tl": self._normalize_lang(target_lang),
            "dt": "t",
            "q": text,
        }
        logger.debug("GET %s (%s -> %s, %d chars)", self.ENDPOINT, params["sl"], params["tl"], len(text))
        try:
            response = self.session.get(self.ENDPOINT, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TranslationEndpointError(f"Google Free request failed: {e}") from e

        if response.status_code != 200:
            raise TranslationEndpointError(
                f"Google Free returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
            segments = data[0]
            translated = "".join(seg[0] for seg in segments if seg and seg[0])
        except (ValueError, TypeError, IndexError) as e:
            raise TranslationEndpointError(f"Unexpected Google Free payload: {e}") from e

        return TranslationResult(
            text=translated,
            source_text=text,
            metadata={
                "translator": self.name,
                "src_lang": params["sl"],
                "dest_lang": params["tl"],
            },
        )

    def _normalize_lang(self, lang: str) -> str:
        """Normalize language code for the endpoint (e.g. 'pt-BR' -> 'pt')."""
        lang_lower = lang.lower().strip()
        if lang_lower in ("zh-cn", "zh-tw"):
            return lang_lower
        return lang_lower.split("-")[0].split("_")[0]
