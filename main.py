#!/usr/bin/env python3
"""
Social-Feed-Client - Hauptprogramm
Zeigt den Feed an, liked Posts, schreibt Kommentare, lädt Bilder herunter
"""

import argparse
import asyncio
import getpass
import logging
import sys
import traceback

from api import FeedApiClient
from config import Config
from errors import ApiError
from feed import FeedCoordinator, FeedStatus
from interaction import InteractionStore
from storage import Credential, CredentialStore
from viewer import ResourceViewer

logger = logging.getLogger("main")


# ========================================
# DARSTELLUNG
# ========================================

def render_post(store: InteractionStore) -> str:
    post = store.post
    lines = [
        f"[{post.post_id}] @{post.author} · {post.display_date}",
        f"  {post.display_content}",
    ]
    if store.has_download_affordance:
        lines.append(f"  🖼️  {post.image_url}")

    liked = " (geliked)" if store.likes.has_liked else ""
    lines.append(f"  ❤️ {store.likes.like_count} Likes{liked} | 💬 {len(store.comments.comments)} Kommentare")

    for comment in store.comments.comments:
        lines.append(f"    - @{comment.author} ({comment.display_date}): {comment.content}")
    return "\n".join(lines)


def render_feed(coordinator: FeedCoordinator) -> str:
    if coordinator.status == FeedStatus.ERRORED:
        header = f"⚠️  Feed konnte nicht geladen werden: {coordinator.error} (erneut versuchen mit 'feed')"
        if not coordinator.posts:
            return header
    else:
        header = None

    if coordinator.is_empty:
        return "Noch keine Posts."

    blocks = [render_post(coordinator.stores[post.post_id]) for post in coordinator.posts]
    if header:
        blocks.insert(0, header)
    return "\n\n".join(blocks)


def redirect_to(target: str):
    if target == "signup":
        print("Nicht angemeldet. Neues Konto: python main.py signup <username>, danach: python main.py login <username>")
    elif target == "login":
        print("Abgemeldet. Erneut anmelden mit: python main.py login <username>")


# ========================================
# BEFEHLE
# ========================================

async def login(api, credentials: CredentialStore, username: str, password: str) -> int:
    try:
        body = await api.call(
            Config.LOGIN_ENDPOINT,
            "POST",
            payload={"username": username, "password": password},
        )
    except ApiError as e:
        logger.error(f"Login fehlgeschlagen: {e}")
        return 1

    token = body.get("auth_token") if isinstance(body, dict) else None
    if not token:
        logger.error("Login-Antwort enthält kein Token")
        return 1

    credentials.save(Credential(token=token, username=username))
    print(f"Angemeldet als {username}")
    return 0


async def signup(api, username: str, password: str) -> int:
    try:
        await api.call(
            Config.SIGNUP_ENDPOINT,
            "POST",
            payload={"username": username, "password": password},
        )
    except ApiError as e:
        logger.error(f"Registrierung fehlgeschlagen: {e}")
        return 1

    print(f"Konto {username} angelegt. Jetzt anmelden: python main.py login {username}")
    return 0


async def run_command(args, api, credentials: CredentialStore) -> int:
    coordinator = FeedCoordinator(
        api,
        credentials,
        viewer=ResourceViewer(),
        redirect=redirect_to,
        download_dir=Config.DOWNLOAD_DIR,
    )

    if args.command == "logout":
        coordinator.logout()
        return 0

    if not await coordinator.load():
        if coordinator.status == FeedStatus.ERRORED:
            print(render_feed(coordinator))
        return 1

    if args.command == "feed":
        print(render_feed(coordinator))
        return 0

    store = coordinator.store_for(args.post_id)
    if store is None:
        logger.error(f"Post {args.post_id} nicht im Feed gefunden")
        return 1

    if args.command == "like":
        if not store.can_like:
            print("Bereits geliked.")
            return 0
        ok = await store.like()
        print(render_post(store))
        return 0 if ok else 1

    if args.command == "comment":
        comment = await store.submit_comment(args.text)
        if comment is None:
            if store.last_error:
                print(f"Kommentar nicht gespeichert: {store.last_error}")
            else:
                print("Leerer Kommentar – nichts gesendet.")
            return 1
        print(render_post(store))
        return 0

    if args.command == "download":
        if not store.has_download_affordance:
            print("Dieser Post hat kein Bild.")
            return 1
        path = await store.download()
        if path:
            print(f"Gespeichert: {path}")
            return 0
        return 1

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Social Feed Client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Beispiele:
  python main.py signup alice             # Konto anlegen
  python main.py login alice              # Anmelden (Passwort wird abgefragt)
  python main.py feed                     # Feed anzeigen
  python main.py like 12                  # Post 12 liken
  python main.py comment 12 "nice!"       # Kommentar schreiben
  python main.py download 12              # Bild von Post 12 speichern
  python main.py logout
        """
    )

    parser.add_argument(
        '--base-url',
        type=str,
        default=None,
        help=f'API-Basis-URL (Standard: {Config.BASE_URL})'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Debug-Modus aktivieren (mehr Logs)'
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        default=Config.HEADLESS,
        help='Browser im Hintergrund ausführen'
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("feed", help="Feed anzeigen")

    like = sub.add_parser("like", help="Post liken")
    like.add_argument("post_id")

    comment = sub.add_parser("comment", help="Kommentar schreiben")
    comment.add_argument("post_id")
    comment.add_argument("text")

    download = sub.add_parser("download", help="Bild eines Posts herunterladen")
    download.add_argument("post_id")

    signup_parser = sub.add_parser("signup", help="Neues Konto anlegen")
    signup_parser.add_argument("username")

    login_parser = sub.add_parser("login", help="Anmelden und Token speichern")
    login_parser.add_argument("username")

    sub.add_parser("logout", help="Token löschen")
    return parser


async def main(argv=None) -> int:
    """Hauptfunktion des Feed-Clients"""
    args = build_parser().parse_args(argv)

    # ========================================
    # 🔧 KONFIGURATION ÜBERSCHREIBEN
    # ========================================
    if args.base_url:
        Config.BASE_URL = args.base_url
    if args.headless:
        Config.HEADLESS = args.headless
    if args.verbose:
        Config.LOG_LEVEL = "DEBUG"

    logging.basicConfig(level=Config.LOG_LEVEL)
    logger.debug("Debug-Modus aktiviert")

    Config.setup_directories()
    credentials = CredentialStore()

    try:
        async with FeedApiClient() as api:
            if args.command in ("login", "signup"):
                password = getpass.getpass(f"Passwort für {args.username}: ")
                if args.command == "signup":
                    return await signup(api, args.username, password)
                return await login(api, credentials, args.username, password)
            return await run_command(args, api, credentials)

    except KeyboardInterrupt:
        logger.warning("Abgebrochen (Ctrl+C)")
        return 130

    except Exception as e:
        logger.error(f"Kritischer Fehler: {e}")
        logger.error(traceback.format_exc())
        return 1


def run():
    """Entry Point für das Programm"""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nProgramm abgebrochen")
        sys.exit(130)


if __name__ == '__main__':
    run()
