import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from config import Config

logger = logging.getLogger(__name__)


class ResourceViewer:
    """
    Öffnet eine Ressource in einem eigenen Browserfenster. Wird genutzt,
    wenn der Download eines Bildes fehlschlägt.
    """

    def __init__(self, headless=None):
        self.headless = Config.HEADLESS if headless is None else headless

    async def open(self, url: str) -> bool:
        logger.info(f"Öffne im Browser: {url}")
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=self.headless)
                context = await browser.new_context(user_agent=Config.USER_AGENT)
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded")

                # Sichtbares Fenster offen lassen, bis der Nutzer es schließt
                if not self.headless:
                    await page.wait_for_event("close", timeout=0)

                await browser.close()
            return True
        except PlaywrightError as e:
            logger.error(f"Browser konnte {url} nicht öffnen: {e}")
            return False
