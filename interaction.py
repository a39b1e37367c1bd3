import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import urlparse

from config import Config
from errors import ApiError
from models import Comment, CommentState, LikeState, Post, extract_like_user, unwrap_collection

logger = logging.getLogger(__name__)


class InteractionStore:
    """
    Veränderlicher View-Zustand für genau einen Post: Likes, Kommentare
    und Download. Jede Aktion ist über ein eigenes In-Flight-Flag gegen
    Doppelauslösung geschützt; verschiedene Aktionen laufen unabhängig.

    Likes sind optimistisch (sofort sichtbar, bei Fehler zurückgenommen),
    Kommentare pessimistisch (erst nach Server-Antwort angehängt).
    """

    def __init__(
        self,
        post: Post,
        api,
        credentials,
        viewer=None,
        redirect: Optional[Callable[[str], None]] = None,
        download_dir=None,
        rollback_failed_likes: Optional[bool] = None,
    ):
        self.post = post
        self.api = api
        self.credentials = credentials
        self.viewer = viewer
        self.redirect = redirect
        self.download_dir = Path(download_dir) if download_dir else Config.DOWNLOAD_DIR
        self.rollback_failed_likes = (
            Config.ROLLBACK_FAILED_LIKES if rollback_failed_likes is None else rollback_failed_likes
        )

        self.likes = LikeState(like_count=len(post.likes), has_liked=False)
        self.comments = CommentState.initial(post.comments)
        self.is_downloading = False
        self.last_error: Optional[Exception] = None

        self._like_in_flight = False
        self._liked_confirmed = False
        self._closed = False
        self._listeners: List[Callable[["InteractionStore"], None]] = []

    # ============================================================
    # BEOBACHTER / LEBENSZYKLUS
    # ============================================================

    def subscribe(self, callback: Callable[["InteractionStore"], None]):
        self._listeners.append(callback)

    def close(self):
        """View wurde entfernt: spätere Ergebnisse werden nicht mehr gemeldet."""
        self._closed = True
        self._listeners.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    def _notify(self):
        if self._closed:
            return
        for callback in list(self._listeners):
            callback(self)

    def _fail(self, action: str, error: Exception):
        self.last_error = error
        logger.warning(f"{action} für Post {self.post.post_id} fehlgeschlagen: {error}")

    def _require_credential(self):
        credential = self.credentials.get()
        if credential is None:
            logger.info("Kein Token vorhanden – Weiterleitung zur Registrierung")
            if self.redirect:
                self.redirect("signup")
        return credential

    # ============================================================
    # LIKE
    # ============================================================

    @property
    def can_like(self) -> bool:
        return not self.likes.has_liked and not self._like_in_flight

    async def like(self) -> bool:
        """
        Optimistisches Like. Gibt True zurück, wenn der Aufruf abgeschickt
        wurde und erfolgreich war; ein nicht erlaubter Aufruf ist ein No-op.
        """
        if not self.can_like:
            return False

        credential = self._require_credential()
        if credential is None:
            return False

        self._like_in_flight = True
        self.likes.has_liked = True
        self.likes.like_count += 1
        self._notify()

        try:
            await self.api.call(
                Config.LIKES_ENDPOINT,
                "POST",
                payload={"post": self.post.post_id},
                auth_token=credential.token,
            )
        except ApiError as e:
            if self._liked_confirmed:
                # Server kennt das Like schon: Status bleibt, Zähler ohne Doppelzählung
                self.likes.like_count = max(0, self.likes.like_count - 1)
            elif self.rollback_failed_likes:
                self.likes.has_liked = False
                self.likes.like_count = max(0, self.likes.like_count - 1)
            self._fail("Like", e)
            return False
        else:
            self.last_error = None
            return True
        finally:
            self._like_in_flight = False
            self._notify()

    async def hydrate(self):
        """
        Fragt ab, ob der aktuelle Nutzer den Post schon geliked hat.
        Best effort: Fehler lassen has_liked unverändert.
        """
        credential = self.credentials.get()
        if credential is None:
            return
        if not credential.username:
            logger.debug("Benutzername unbekannt – Like-Status wird nicht abgefragt")
            return

        try:
            body = await self.api.call(
                Config.LIKES_ENDPOINT,
                "GET",
                auth_token=credential.token,
                params={"post": self.post.post_id},
            )
            likes = unwrap_collection(body)
        except ApiError as e:
            logger.debug(f"Like-Status für Post {self.post.post_id} nicht verfügbar: {e}")
            return

        if any(extract_like_user(like) == credential.username for like in likes):
            # has_liked wird nur gesetzt, nie zurückgenommen
            self._liked_confirmed = True
            if not self.likes.has_liked:
                self.likes.has_liked = True
                self._notify()

    # ============================================================
    # KOMMENTARE
    # ============================================================

    def set_draft(self, text: str):
        self.comments.draft_text = text
        self._notify()

    async def submit_comment(self, text: Optional[str] = None) -> Optional[Comment]:
        """
        Schickt einen Kommentar ab (ohne Argument: den aktuellen Entwurf).
        Liefert den vom Server bestätigten Kommentar oder None.
        """
        if text is None:
            text = self.comments.draft_text
        content = (text or "").strip()
        if not content or self.comments.is_submitting:
            return None

        credential = self._require_credential()
        if credential is None:
            return None

        self.comments.is_submitting = True
        self._notify()
        submitted_at = datetime.now(timezone.utc)

        try:
            body = await self.api.call(
                Config.COMMENTS_ENDPOINT,
                "POST",
                payload={"post": self.post.post_id, "content": content},
                auth_token=credential.token,
            )
        except ApiError as e:
            self.comments.is_submitting = False
            self._fail("Kommentar", e)
            self._notify()
            return None
        except BaseException:
            self.comments.is_submitting = False
            raise

        comment = Comment.from_api(body, submitted_at=submitted_at)
        self.comments.comments.append(comment)
        self.comments.draft_text = ""
        self.comments.is_submitting = False
        self.last_error = None
        self._notify()
        return comment

    # ============================================================
    # DOWNLOAD
    # ============================================================

    @property
    def has_download_affordance(self) -> bool:
        return self.post.image_url is not None

    @property
    def can_download(self) -> bool:
        return self.has_download_affordance and not self.is_downloading

    def _download_target(self) -> Path:
        name = Path(urlparse(self.post.image_url).path).name or "image"
        return self.download_dir / f"post-{self.post.post_id}-{name}"

    async def download(self) -> Optional[Path]:
        """
        Lädt das Bild des Posts in DOWNLOAD_DIR. Schlägt der Abruf fehl,
        wird die Ressource stattdessen im Browser geöffnet.
        """
        if not self.can_download:
            return None

        url = self.post.image_url
        self.is_downloading = True
        self._notify()

        credential = self.credentials.get()
        try:
            data = await self.api.fetch_bytes(url, auth_token=credential.token if credential else None)
            target = self._download_target()
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            logger.info(f"Bild gespeichert: {target}")
            self.last_error = None
            return target
        except (ApiError, OSError) as e:
            self._fail("Download", e)
            if self.viewer and not self._closed:
                await self.viewer.open(url)
            return None
        finally:
            self.is_downloading = False
            self._notify()
