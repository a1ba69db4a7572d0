"""MyMemory translation API backend (free, keyless, daily quota)."""

from __future__ import annotations

import requests

from lokma_i18n.errors import TranslationEndpointError
from lokma_i18n.translate.base import Translator, TranslationResult


class MyMemoryTranslator(Translator):
    """Translator backed by api.mymemory.translated.net.

    Passing an email raises the anonymous daily quota.
    """

    ENDPOINT = "https://api.mymemory.translated.net/get"

    def __init__(self, timeout: float = 10.0, email: str | None = None):
        self.timeout = timeout
        self.email = email

    @property
    def name(self) -> str:
        return "mymemory"

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        params = {"q": text, "langpair": f"{source_lang}|{target_lang}"}
        if self.email:
            params["de"] = self.email

        try:
            response = requests.get(self.ENDPOINT, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise TranslationEndpointError(f"MyMemory request failed: {e}") from e
        except ValueError as e:
            raise TranslationEndpointError(f"MyMemory returned invalid JSON: {e}") from e

        # MyMemory reports quota and input errors with HTTP 200 and a status field
        if data.get("responseStatus") != 200:
            raise TranslationEndpointError(
                f"MyMemory error {data.get('responseStatus')}: {data.get('responseDetails')}"
            )
        translation = (data.get("responseData") or {}).get("translatedText") or ""

        return TranslationResult(
            text=translation,
            source_text=text,
            metadata={"translator": self.name, "langpair": params["langpair"]},
        )
