"""
Rasterizers turn a rendered HTML document into one tall bitmap.

`PlaywrightRasterizer` drives headless Chromium through the Playwright
sync API. Tests substitute any object with the same methods.
"""
import logging
from io import BytesIO

from PIL import Image
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from quotegen.exceptions import AssetLoadError, ExportError

logger = logging.getLogger(__name__)

# Compact layout applied while capturing: no page chrome, no print triggers
EXPORT_STYLESHEET = """
html, body { margin: 0 !important; padding: 0 !important; background: #ffffff !important; }
.no-export, .print-toolbar { display: none !important; }
.page { box-shadow: none !important; margin: 0 !important; }
"""

# Resolves once every <img> finished loading (successfully or not)
_IMAGES_SETTLED_JS = """
() => Array.from(document.images).every(img => img.complete)
"""

_BROKEN_IMAGES_JS = """
() => Array.from(document.images)
        .filter(img => !img.complete || img.naturalWidth === 0)
        .map(img => img.currentSrc || img.src || img.alt || '(inline image)')
        .map(src => src.startsWith('data:') ? src.slice(0, 32) + '...' : src)
"""


class PlaywrightRasterizer:
    """
    Headless Chromium rasterizer.

    Usage:
        rasterizer = PlaywrightRasterizer(viewport_width=794)
        rasterizer.load(html, scale=2)
        rasterizer.apply_export_layout()
        rasterizer.wait_for_assets(timeout=10)
        image = rasterizer.capture()
        rasterizer.restore_layout()
        rasterizer.close()
    """

    def __init__(self, viewport_width: int = 794, viewport_height: int = 1123, headless: bool = True):
        self.viewport = {'width': viewport_width, 'height': viewport_height}
        self.headless = headless
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None
        self._style_handle = None

    def load(self, html: str, scale: int = 2) -> None:
        """Start the browser and load the document at `scale` device pixels per CSS pixel."""
        try:
            self._playwright = sync_playwright().start()
            self.browser = self._playwright.chromium.launch(headless=self.headless)
            self.context = self.browser.new_context(viewport=self.viewport, device_scale_factor=scale)
            self.page = self.context.new_page()
            self.page.set_content(html, wait_until='domcontentloaded')
        except PlaywrightError as e:
            logger.error(f"[EXPORT] Browser failed to load document: {e}")
            raise ExportError(f'Could not load document for export: {e}') from e

    def apply_export_layout(self) -> None:
        try:
            self._style_handle = self.page.add_style_tag(content=EXPORT_STYLESHEET)
        except PlaywrightError as e:
            raise ExportError(f'Could not prepare document layout: {e}') from e

    def wait_for_assets(self, timeout: float) -> None:
        """
        Block until every image has loaded, for at most `timeout` seconds.

        Raises:
            AssetLoadError: an image is still loading after the timeout or failed to decode
        """
        try:
            self.page.wait_for_function(_IMAGES_SETTLED_JS, timeout=timeout * 1000)
        except PlaywrightTimeoutError:
            pending = self._broken_images()
            logger.warning(f"[EXPORT] Images still loading after {timeout}s: {pending}")
            raise AssetLoadError(f'Images did not load within {timeout} seconds', pending=pending)
        except PlaywrightError as e:
            raise ExportError(f'Could not inspect document images: {e}') from e

        broken = self._broken_images()
        if broken:
            logger.warning(f"[EXPORT] Broken images in document: {broken}")
            raise AssetLoadError('Some document images failed to load', pending=broken)

    def _broken_images(self):
        try:
            return self.page.evaluate(_BROKEN_IMAGES_JS)
        except PlaywrightError:
            return []

    def capture(self) -> Image.Image:
        """Full-page screenshot as a PIL image."""
        try:
            png = self.page.screenshot(full_page=True, type='png')
        except PlaywrightError as e:
            logger.error(f"[EXPORT] Screenshot failed: {e}")
            raise ExportError(f'Could not capture document: {e}') from e
        image = Image.open(BytesIO(png))
        image.load()
        return image

    def restore_layout(self) -> None:
        """Remove the export stylesheet (no-op if it was never applied)."""
        if self._style_handle is None:
            return
        try:
            self._style_handle.evaluate('el => el.remove()')
        except PlaywrightError as e:
            raise ExportError(f'Could not restore document layout: {e}') from e
        self._style_handle = None

    def close(self) -> None:
        """Close page, context, browser and the Playwright driver."""
        for resource in (self.page, self.context, self.browser):
            if resource is not None:
                try:
                    resource.close()
                except PlaywrightError as e:
                    logger.warning(f"[EXPORT] Cleanup warning: {e}")
        if self._playwright is not None:
            self._playwright.stop()
        self.page = self.context = self.browser = self._playwright = None


def get_rasterizer(config) -> PlaywrightRasterizer:
    """Build the production rasterizer from the Flask config."""
    return PlaywrightRasterizer(
        viewport_width=config.get('EXPORT_VIEWPORT_WIDTH', 794),
        headless=config.get('EXPORT_HEADLESS', True),
    )


__all__ = ['PlaywrightRasterizer', 'get_rasterizer', 'EXPORT_STYLESHEET']
