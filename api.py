import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from bs4 import BeautifulSoup

from config import Config
from errors import MalformedResponseError, NetworkError, RejectedByServerError

logger = logging.getLogger(__name__)


def _extract_error_message(body: str, content_type: str) -> Optional[str]:
    """
    Holt eine lesbare Fehlermeldung aus der Server-Antwort.
    JSON: 'detail', 'non_field_errors' oder erstes Feld.
    HTML (z.B. Debug-Seiten): <title> bzw. erstes <h1>.
    """
    if not body or not body.strip():
        return None

    if "json" in content_type:
        try:
            data = json.loads(body)
        except ValueError:
            return body.strip()[:200]

        if isinstance(data, dict):
            for key in ("detail", "non_field_errors"):
                if key in data:
                    data = data[key]
                    break
            else:
                if data:
                    key, value = next(iter(data.items()))
                    data = f"{key}: {value[0] if isinstance(value, list) and value else value}"
        if isinstance(data, list):
            data = data[0] if data else None
        return str(data) if data else None

    if "html" in content_type:
        soup = BeautifulSoup(body, "html.parser")
        for tag in ("title", "h1"):
            node = soup.find(tag)
            if node and node.get_text(strip=True):
                return node.get_text(strip=True, separator=" ")
        return None

    return body.strip()[:200]


class FeedApiClient:
    """
    Asynchroner HTTP-Client für die Feed-API. Jeder Aufruf ist ein
    einzelner Request ohne eigenes Retry; Fehler werden in die
    Fehler-Taxonomie aus errors.py übersetzt.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or Config.BASE_URL
        self.timeout = timeout or Config.REQUEST_TIMEOUT

        # HTTP-Session, wird in __aenter__ erzeugt
        self.session: Optional[aiohttp.ClientSession] = None

        # Standard-Header für alle Requests
        self.headers = {
            "User-Agent": Config.USER_AGENT,
            "Accept": "application/json",
        }

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=self.headers,
        )
        return self

    async def __aexit__(self, *args):
        if self.session:
            await self.session.close()
            self.session = None

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def _auth_headers(self, auth_token: Optional[str]) -> Dict[str, str]:
        if not auth_token:
            return {}
        return {"Authorization": f"{Config.AUTH_SCHEME} {auth_token}"}

    # ============================================================
    # API-AUFRUFE
    # ============================================================

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None,
        auth_token: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Führt einen API-Aufruf aus und liefert den dekodierten JSON-Body
        (None bei leerer Antwort).

        Raises:
            NetworkError: Verbindungsfehler oder Timeout
            RejectedByServerError: Status >= 400
            MalformedResponseError: Body ist kein gültiges JSON
        """
        if not self.session:
            raise RuntimeError("HTTP-Session nicht initialisiert")

        url = self._url(endpoint)
        logger.debug(f"{method} {url} params={params}")

        try:
            async with self.session.request(
                method,
                url,
                json=payload,
                params=params,
                headers=self._auth_headers(auth_token),
            ) as response:
                status = response.status
                content_type = response.content_type or ""
                raw = await response.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout bei {method} {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"{method} {url} fehlgeschlagen: {e}") from e

        if status >= 400:
            body = raw.decode("utf-8", errors="replace")
            raise RejectedByServerError(status, _extract_error_message(body, content_type))

        if not raw.strip():
            return None

        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise MalformedResponseError(f"Ungültiges JSON von {method} {url}") from e

    async def fetch_bytes(self, url: str, auth_token: Optional[str] = None) -> bytes:
        """Lädt eine Binärressource (z.B. ein Bild) vollständig herunter."""
        if not self.session:
            raise RuntimeError("HTTP-Session nicht initialisiert")

        url = self._url(url)
        logger.debug(f"GET {url} (binär)")

        try:
            async with self.session.get(url, headers=self._auth_headers(auth_token)) as response:
                if response.status >= 400:
                    body = await response.text(errors="replace")
                    raise RejectedByServerError(
                        response.status,
                        _extract_error_message(body, response.content_type or ""),
                    )
                return await response.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout beim Download von {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Download von {url} fehlgeschlagen: {e}") from e
