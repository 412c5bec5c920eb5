from browser.screenshots import ScreenshotStore, get_screenshot_store
from browser.surface import BrowserSurface, get_browser_surface

__all__ = ["BrowserSurface", "ScreenshotStore", "get_browser_surface", "get_screenshot_store"]
