# errors.py

from typing import Optional


class FeedClientError(Exception):
    """Basisklasse für alle Fehler des Feed-Clients"""


class NoCredentialError(FeedClientError):
    """Kein Token vorhanden – Nutzer muss sich registrieren/anmelden"""


class ApiError(FeedClientError):
    """Fehler an der API-Grenze (Netzwerk, Server, Antwortformat)"""


class NetworkError(ApiError):
    """Verbindungsfehler oder Timeout"""


class RejectedByServerError(ApiError):
    """Server hat die Anfrage mit einem Fehlerstatus abgelehnt"""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or f"HTTP {status}"
        super().__init__(f"{status}: {self.message}")


class MalformedResponseError(ApiError):
    """Antwort konnte nicht als erwartete Struktur gelesen werden"""
