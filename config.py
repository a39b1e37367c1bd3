# config.py

import os
from pathlib import Path


class Config:
    """Konfiguration für den Social-Feed-Client"""

    # ========================================
    # 🌐 API KONFIGURATION
    # ========================================
    BASE_URL = os.getenv("FEED_API_URL", "http://127.0.0.1:8000/api/")
    MEDIA_BASE_URL = os.getenv("FEED_MEDIA_URL", "http://127.0.0.1:8000")
    AUTH_SCHEME = "Token"

    # ========================================
    # 🎯 ENDPUNKTE (relativ zu BASE_URL)
    # ========================================
    POSTS_ENDPOINT = "posts/"
    LIKES_ENDPOINT = "likes/"
    COMMENTS_ENDPOINT = "comments/"
    LOGIN_ENDPOINT = "auth/token/login/"
    SIGNUP_ENDPOINT = "auth/users/"

    # ========================================
    # ⏱️ TIMING
    # ========================================
    REQUEST_TIMEOUT = 30  # Sekunden

    # ========================================
    # 🔁 VERHALTEN
    # ========================================
    HYDRATE_LIKES = True          # Like-Status beim Laden abfragen?
    ROLLBACK_FAILED_LIKES = True  # Optimistisches Like bei Fehler zurücknehmen?

    # ========================================
    # 🖥️ BROWSER / HTTP
    # ========================================
    HEADLESS = False  # Browser sichtbar (True = unsichtbar)
    USER_AGENT = "socialfeed-client/0.1 (+aiohttp)"

    # ========================================
    # 📊 LOGGING
    # ========================================
    LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # ========================================
    # 💾 DATEN
    # ========================================
    DATA_DIR = Path("data")
    CREDENTIAL_PATH = DATA_DIR / "credential.json"
    DOWNLOAD_DIR = DATA_DIR / "downloads"

    @classmethod
    def setup_directories(cls):
        """Erstellt alle benötigten Verzeichnisse"""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.DOWNLOAD_DIR.mkdir(parents=True, exist_ok=True)
        return cls.DATA_DIR
