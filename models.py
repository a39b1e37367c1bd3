# models.py

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Union

from config import Config
from errors import MalformedResponseError

UNKNOWN_AUTHOR = "Unknown"
UNKNOWN_DATE = "Unknown date"
NO_POST_CONTENT = "[No content]"
NO_COMMENT_TEXT = "[No text]"


# ============================================================
# HILFSFUNKTIONEN FÜR UNVOLLSTÄNDIGE API-DATEN
# ============================================================

def extract_username(raw: Any) -> str:
    """
    Liest den Benutzernamen aus einem Autor-Feld. Akzeptiert
    {"username": ...} oder einen String, sonst "Unknown".
    """
    if isinstance(raw, dict):
        raw = raw.get("username")
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return UNKNOWN_AUTHOR


def extract_like_user(raw: Any) -> Optional[str]:
    """Ermittelt, welchem Nutzer ein Like-Eintrag zugeordnet ist."""
    if not isinstance(raw, dict):
        return None
    user = raw.get("user", raw.get("username"))
    if isinstance(user, dict):
        user = user.get("username")
    if isinstance(user, str) and user.strip():
        return user.strip()
    return None


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """ISO-8601-Zeitstempel parsen; alles Unlesbare wird zu None."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None

    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_date(timestamp: Optional[datetime]) -> str:
    if timestamp is None:
        return UNKNOWN_DATE
    return timestamp.strftime("%Y-%m-%d")


def resolve_media_url(raw: Any, media_base_url: Optional[str] = None) -> Optional[str]:
    """Bild-Referenz in eine absolute URL umwandeln (oder None)."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    href = raw.strip()
    if href.startswith(("http://", "https://")):
        return href
    base = (media_base_url or Config.MEDIA_BASE_URL).rstrip("/")
    return f"{base}{href}" if href.startswith("/") else f"{base}/{href}"


def unwrap_collection(body: Any) -> List[Any]:
    """
    Liefert die Liste aus einer Antwort. Unterstützt einfache Listen
    und paginierte Antworten der Form {"results": [...]}.
    """
    if isinstance(body, dict) and isinstance(body.get("results"), list):
        return body["results"]
    if isinstance(body, list):
        return body
    raise MalformedResponseError(f"Liste erwartet, erhalten: {type(body).__name__}")


# ============================================================
# KOMMENTAR-IDS
# ============================================================

@dataclass(frozen=True)
class PendingId:
    """Lokal erzeugte ID – wird nie an den Server geschickt."""
    local_id: str

    def __str__(self):
        return f"pending:{self.local_id}"


@dataclass(frozen=True)
class ConfirmedId:
    """Vom Server vergebene ID"""
    server_id: str

    def __str__(self):
        return self.server_id


CommentId = Union[PendingId, ConfirmedId]


def new_pending_id() -> PendingId:
    return PendingId(uuid.uuid4().hex[:16])


# ============================================================
# MODELLE
# ============================================================

@dataclass(frozen=True)
class Comment:
    """Kommentar-Modell"""
    comment_id: CommentId
    author: str = UNKNOWN_AUTHOR
    content: str = NO_COMMENT_TEXT
    timestamp: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.comment_id, PendingId)

    @property
    def display_date(self) -> str:
        return format_date(self.timestamp)

    @classmethod
    def from_api(cls, raw: Any, submitted_at: Optional[datetime] = None) -> "Comment":
        """
        Baut einen Kommentar aus einer API-Antwort. Jedes Feld fällt
        einzeln auf seinen Standardwert zurück; ohne Server-ID wird
        eine PendingId vergeben.
        """
        if not isinstance(raw, dict):
            # z.B. nur Primärschlüssel in der Post-Liste
            if isinstance(raw, (int, str)) and str(raw).strip():
                return cls(comment_id=ConfirmedId(str(raw)), timestamp=submitted_at)
            return cls(comment_id=new_pending_id(), timestamp=submitted_at)

        server_id = raw.get("id")
        if server_id is None or str(server_id).strip() == "":
            comment_id: CommentId = new_pending_id()
        else:
            comment_id = ConfirmedId(str(server_id))

        content = raw.get("content", raw.get("text"))
        if not isinstance(content, str) or not content.strip():
            content = NO_COMMENT_TEXT

        return cls(
            comment_id=comment_id,
            author=extract_username(raw.get("author", raw.get("user"))),
            content=content,
            timestamp=parse_timestamp(raw.get("created_at")) or submitted_at,
        )


@dataclass(frozen=True)
class Post:
    """Post-Snapshot, wie ihn der Feed geladen hat. Wird nie verändert."""
    post_id: str
    author: str = UNKNOWN_AUTHOR
    content: Optional[str] = None
    timestamp: Optional[datetime] = None
    image_url: Optional[str] = None
    likes: List[Any] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @property
    def display_content(self) -> str:
        return self.content if self.content else NO_POST_CONTENT

    @property
    def display_date(self) -> str:
        return format_date(self.timestamp)

    @classmethod
    def from_api(cls, raw: Any, media_base_url: Optional[str] = None) -> "Post":
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Post-Objekt erwartet, erhalten: {type(raw).__name__}")

        post_id = raw.get("id")
        if post_id is None or str(post_id).strip() == "":
            raise MalformedResponseError("Post ohne ID")

        content = raw.get("content")
        if not isinstance(content, str) or not content.strip():
            content = None

        likes = raw.get("likes")
        comments = raw.get("comments")

        return cls(
            post_id=str(post_id),
            author=extract_username(raw.get("author")),
            content=content,
            timestamp=parse_timestamp(raw.get("created_at")),
            image_url=resolve_media_url(raw.get("image"), media_base_url),
            likes=list(likes) if isinstance(likes, list) else [],
            comments=[Comment.from_api(c) for c in comments] if isinstance(comments, list) else [],
        )


def parse_posts(body: Any, media_base_url: Optional[str] = None) -> List[Post]:
    """Parst die komplette Post-Liste; ein ungültiger Eintrag verwirft alles."""
    return [Post.from_api(item, media_base_url) for item in unwrap_collection(body)]


# ============================================================
# VERÄNDERLICHER UI-ZUSTAND (gehört genau einem InteractionStore)
# ============================================================

@dataclass
class LikeState:
    like_count: int = 0
    has_liked: bool = False


@dataclass
class CommentState:
    comments: List[Comment] = field(default_factory=list)
    draft_text: str = ""
    is_submitting: bool = False

    @classmethod
    def initial(cls, comments: Iterable[Comment]) -> "CommentState":
        return cls(comments=list(comments))
