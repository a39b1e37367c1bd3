# storage.py
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Bearer-Token plus (falls bekannt) der zugehörige Benutzername."""
    token: str
    username: Optional[str] = None


class CredentialStore:
    """
    Speichert das Token als JSON-Datei. Der restliche Client liest es
    nur über get(); geändert wird es ausschließlich beim Login (save)
    und beim Logout (clear).
    """

    def __init__(self, path=None):
        self.path = Path(path) if path else Config.CREDENTIAL_PATH

    def get(self) -> Optional[Credential]:
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Credential-Datei unlesbar ({self.path}): {e}")
            return None

        if not isinstance(data, dict) or not data.get("token"):
            return None

        username = data.get("username")
        return Credential(
            token=str(data["token"]),
            username=username if isinstance(username, str) and username else None,
        )

    def save(self, credential: Credential):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": credential.token, "username": credential.username}),
            encoding="utf-8",
        )
        logger.debug(f"Credential gespeichert: {self.path}")

    def clear(self):
        self.path.unlink(missing_ok=True)
        logger.debug("Credential gelöscht")
