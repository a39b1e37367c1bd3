import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from config import Config
from errors import ApiError
from interaction import InteractionStore
from models import Post, parse_posts

logger = logging.getLogger(__name__)


class FeedStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


class FeedCoordinator:
    """
    Lädt die Post-Liste und erzeugt pro Post einen InteractionStore.

    Überlappende load()-Aufrufe bekommen fortlaufende Generationen;
    ein Ergebnis wird nur übernommen, wenn noch kein neuerer Aufruf
    abgeschlossen ist (last-resolved-wins).
    """

    def __init__(
        self,
        api,
        credentials,
        viewer=None,
        redirect: Optional[Callable[[str], None]] = None,
        hydrate_likes: Optional[bool] = None,
        download_dir=None,
        media_base_url: Optional[str] = None,
    ):
        self.api = api
        self.credentials = credentials
        self.viewer = viewer
        self.redirect = redirect
        self.hydrate_likes = Config.HYDRATE_LIKES if hydrate_likes is None else hydrate_likes
        self.download_dir = download_dir
        self.media_base_url = media_base_url

        self.posts: List[Post] = []
        self.stores: Dict[str, InteractionStore] = {}
        self.status = FeedStatus.IDLE
        self.error: Optional[ApiError] = None

        self._issued = 0
        self._resolved = 0
        self._listeners: List[Callable[["FeedCoordinator"], None]] = []

    def subscribe(self, callback: Callable[["FeedCoordinator"], None]):
        self._listeners.append(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback(self)

    @property
    def is_empty(self) -> bool:
        return self.status == FeedStatus.LOADED and not self.posts

    def store_for(self, post_id: str) -> Optional[InteractionStore]:
        return self.stores.get(str(post_id))

    # ============================================================
    # LADEN
    # ============================================================

    async def load(self) -> bool:
        credential = self.credentials.get()
        if credential is None:
            logger.info("Kein Token vorhanden – Weiterleitung zur Registrierung")
            if self.redirect:
                self.redirect("signup")
            return False

        self._issued += 1
        generation = self._issued
        self.status = FeedStatus.LOADING
        self._notify()
        logger.debug(f"Lade Feed (Generation {generation})")

        try:
            body = await self.api.call(Config.POSTS_ENDPOINT, "GET", auth_token=credential.token)
            posts = parse_posts(body, self.media_base_url)
        except ApiError as e:
            if generation <= self._resolved:
                logger.debug(f"Veralteter Fehler verworfen (Generation {generation}): {e}")
                return False
            self._resolved = generation
            self.error = e
            self.status = FeedStatus.LOADING if generation < self._issued else FeedStatus.ERRORED
            logger.warning(f"Feed konnte nicht geladen werden: {e}")
            self._notify()
            return False

        if generation <= self._resolved:
            logger.debug(f"Veraltetes Ergebnis verworfen (Generation {generation})")
            return False

        self._resolved = generation
        new_stores = self._apply(posts)
        self.error = None
        self.status = FeedStatus.LOADING if generation < self._issued else FeedStatus.LOADED
        logger.info(f"{len(posts)} Posts geladen")
        self._notify()

        if self.hydrate_likes and new_stores:
            await asyncio.gather(*(store.hydrate() for store in new_stores))
        return True

    def _apply(self, posts: List[Post]) -> List[InteractionStore]:
        for store in self.stores.values():
            store.close()

        self.posts = posts
        self.stores = {
            post.post_id: InteractionStore(
                post,
                self.api,
                self.credentials,
                viewer=self.viewer,
                redirect=self.redirect,
                download_dir=self.download_dir,
            )
            for post in posts
        }
        return list(self.stores.values())

    async def retry(self) -> bool:
        if self.status not in (FeedStatus.LOADED, FeedStatus.ERRORED):
            return False
        return await self.load()

    # ============================================================
    # LOGOUT
    # ============================================================

    def logout(self):
        """Token löschen, alle Post-Zustände verwerfen, zum Login wechseln."""
        self.credentials.clear()
        for store in self.stores.values():
            store.close()
        self.stores = {}
        self.posts = []
        self.error = None
        self.status = FeedStatus.IDLE
        # laufende Loads gelten ab jetzt als veraltet
        self._resolved = self._issued
        logger.info("Abgemeldet")
        self._notify()
        if self.redirect:
            self.redirect("login")
