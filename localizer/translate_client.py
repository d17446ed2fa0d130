"""Google Translate web endpoint wrapper used for machine translation."""

import logging
import time

import requests

from .errors import OracleError
from .languages import oracle_tag

log = logging.getLogger(__name__)

DEFAULT_URL = "https://translate.googleapis.com/translate_a/single"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)


class GoogleTranslateClient:
    """Client for the free ``translate_a/single`` endpoint.

    One instance is created by the caller and handed to whatever needs
    it; there is no shared module-level client.
    """

    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = 30,
                 user_agent: str = DEFAULT_USER_AGENT):
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = requests.Session()

    def _get(self, params: dict, timeout: float = None) -> list:
        """Send one GET request and return the decoded JSON body."""
        r = self.session.get(
            self.base_url,
            params=params,
            headers={"User-Agent": self.user_agent},
            timeout=timeout or self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def is_available(self) -> bool:
        """Check if the endpoint answers a trivial request."""
        try:
            self._get({"client": "gtx", "sl": "en", "tl": "de", "dt": "t", "q": "ok"},
                      timeout=5)
            return True
        except (requests.RequestException, ValueError, OSError):
            return False

    @staticmethod
    def _parse(data) -> str:
        """Pull the translated text out of ``[[[text, original, ...], ...], ...]``."""
        try:
            chunks = data[0]
            text = "".join(chunk[0] for chunk in chunks if chunk and chunk[0])
        except (IndexError, KeyError, TypeError) as e:
            raise OracleError(f"Unexpected response format: {e}") from e
        if not text:
            raise OracleError("Translation service returned an empty translation")
        return text

    def translate(self, text: str, source: str, target: str) -> str:
        """Translate ``text`` between two project language codes.

        Raises:
            OracleError: on network failure or an unreadable response.
        """
        if not text or not text.strip():
            return ""
        params = {
            "client": "gtx",
            "sl": oracle_tag(source),
            "tl": oracle_tag(target),
            "dt": "t",
            "q": text,
        }
        try:
            data = self._get(params)
        except (requests.RequestException, ValueError) as e:
            raise OracleError(f"Translate API error: {e}") from e
        return self._parse(data)

    def translate_multiple(self, texts: list, source: str, target: str,
                           on_progress=None, delay: float = 0.1) -> list:
        """Translate several texts one after another.

        A text that fails to translate is returned unchanged so the result
        always lines up with ``texts``.  ``delay`` seconds are slept between
        requests to stay under the service's rate limit.
        """
        results = []
        for i, text in enumerate(texts):
            try:
                results.append(self.translate(text, source, target))
            except OracleError as e:
                log.warning("Translation failed for text %d: %s", i, e)
                results.append(text)
            if on_progress:
                on_progress(i + 1, len(texts))
            if delay and i < len(texts) - 1:
                time.sleep(delay)
        return results

    def close(self):
        self.session.close()
