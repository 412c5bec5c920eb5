"""Playwright-backed browser surface driven by the run orchestrator.

Targets come from the model as free text (a visible label, a placeholder, a
CSS selector), so click and type try a fixed ladder of locator strategies and
use the first one that works.
"""
from __future__ import annotations

import base64
import logging
import os
from typing import TYPE_CHECKING, Any, Callable

from agent.errors import ActionExecutionError, BrowserLaunchError
from app.contracts.page_state import PageElement, PageState
from personas.types import Viewport

if TYPE_CHECKING:
    from playwright.sync_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ACTION_TIMEOUT_MS = 3000
SETTLE_TIMEOUT_MS = 10_000
SCROLL_SETTLE_MS = 500
MAX_ELEMENTS = 50

_PAGE_STATE_JS = """() => {
    const results = [];
    const seen = new Set();

    const isVisible = (el) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return style.display !== 'none' && style.visibility !== 'hidden' && style.opacity !== '0'
            && rect.width > 0 && rect.height > 0 && rect.top < window.innerHeight && rect.bottom > 0;
    };
    const selectorFor = (el) => {
        if (el.id) return '#' + el.id;
        if (el.className && typeof el.className === 'string') {
            const classes = el.className.trim().split(/\\s+/).slice(0, 2).join('.');
            if (classes) return el.tagName.toLowerCase() + '.' + classes;
        }
        return el.tagName.toLowerCase();
    };
    const typeOf = (el) => {
        const tag = el.tagName.toLowerCase();
        if (tag === 'button' || el.getAttribute('role') === 'button') return 'button';
        if (tag === 'a') return 'link';
        if (['input', 'textarea', 'select'].includes(tag)) return 'input';
        if (tag === 'form') return 'form';
        if (tag === 'img') return 'image';
        if (['p', 'span', 'div', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'label'].includes(tag)) return 'text';
        return 'other';
    };
    const box = (el) => {
        const r = el.getBoundingClientRect();
        return {x: Math.round(r.x), y: Math.round(r.y), width: Math.round(r.width), height: Math.round(r.height)};
    };

    const interactive = ['button', 'a[href]', 'input', 'textarea', 'select', '[role="button"]', '[onclick]', 'label'];
    interactive.forEach((sel) => {
        document.querySelectorAll(sel).forEach((el) => {
            if (!isVisible(el)) return;
            const isInput = ['INPUT', 'TEXTAREA', 'SELECT'].includes(el.tagName);
            const placeholder = el.getAttribute('placeholder');
            const ariaLabel = el.getAttribute('aria-label');
            const name = el.getAttribute('name');
            const inputType = el.getAttribute('type');
            const text = isInput
                ? (placeholder || ariaLabel || name || inputType || 'input')
                : ((el.innerText || '').trim() || ariaLabel || el.getAttribute('title') || '');
            if (!text || seen.has(text)) return;
            seen.add(text);
            results.push({
                type: typeOf(el),
                text: text.slice(0, 100),
                selector: selectorFor(el),
                attributes: {
                    href: el.getAttribute('href'),
                    type: inputType,
                    name: name,
                    placeholder: placeholder,
                },
                boundingBox: box(el),
            });
        });
    });

    document.querySelectorAll('h1, h2, h3, h4, p').forEach((el) => {
        if (!isVisible(el)) return;
        const text = (el.innerText || '').trim();
        if (!text || text.length < 3 || seen.has(text)) return;
        seen.add(text);
        results.push({type: 'text', text: text.slice(0, 200), selector: selectorFor(el), boundingBox: box(el)});
    });

    return results.slice(0, %d);
}""" % MAX_ELEMENTS


class BrowserSurface:
    def __init__(self, *, headless: bool = True, navigation_timeout_ms: int = 30000) -> None:
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> "Page":
        if self._page is None:
            raise RuntimeError("Browser not launched")
        return self._page

    def launch(self, viewport: Viewport) -> None:
        try:
            from playwright.sync_api import sync_playwright

            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self.headless)
            self._context = self._browser.new_context(
                viewport={"width": viewport.width, "height": viewport.height},
                user_agent=USER_AGENT,
            )
            self._page = self._context.new_page()
        except Exception as e:
            self.close()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e
        logger.info("Browser launched viewport=%sx%s headless=%s", viewport.width, viewport.height, self.headless)

    def close(self) -> None:
        for name in ("_page", "_context", "_browser"):
            handle = getattr(self, name)
            if handle is None:
                continue
            try:
                handle.close()
            except Exception as e:
                logger.warning("Browser close failed for %s: %s", name.lstrip("_"), e)
            setattr(self, name, None)
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as e:
                logger.warning("Playwright stop failed: %s", e)
            self._playwright = None

    def navigate(self, url: str) -> None:
        self.page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)

    def current_url(self) -> str:
        return self.page.url

    def capture_screenshot(self, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self.page.screenshot(path=path, full_page=False)

    def capture_screenshot_base64(self) -> str:
        return base64.b64encode(self.page.screenshot(full_page=False)).decode("ascii")

    def get_page_state(self) -> PageState:
        page = self.page
        raw = page.evaluate(_PAGE_STATE_JS) or []
        elements = [PageElement.model_validate(item) for item in raw]
        return PageState(url=page.url, title=page.title(), elements=elements)

    def click(self, target: str) -> None:
        page = self.page
        strategies: list[Callable[[], Any]] = [
            lambda: page.click(target, timeout=ACTION_TIMEOUT_MS),
            lambda: page.click(f'text="{target}"', timeout=ACTION_TIMEOUT_MS),
            lambda: page.click(f"text={target}", timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_role("button", name=target).click(timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_role("link", name=target).click(timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_placeholder(target).click(timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_label(target).click(timeout=ACTION_TIMEOUT_MS),
        ]
        last_error = self._first_success(strategies)
        if last_error is None:
            self._settle()
            return
        raise ActionExecutionError(f'Could not click "{target}": {last_error}', action="click", target=target)

    def type(self, target: str, text: str) -> None:
        page = self.page
        strategies: list[Callable[[], Any]] = [
            lambda: page.fill(target, text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill(f'input[name="{target}"]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill(f'input[placeholder*="{target}" i]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill(f'textarea[placeholder*="{target}" i]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_label(target).fill(text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_placeholder(target).fill(text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_role("textbox", name=target).fill(text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.get_by_role("searchbox").fill(text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill('input[type="search"]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill('input[name="search"]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill('input[name="q"]', text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill("#searchInput", text, timeout=ACTION_TIMEOUT_MS),
            lambda: page.fill('[role="searchbox"]', text, timeout=ACTION_TIMEOUT_MS),
        ]
        last_error = self._first_success(strategies)
        if last_error is None:
            return

        # last resort: focus whatever input is visible and type into it
        try:
            field = page.query_selector('input:visible, textarea:visible, [contenteditable="true"]:visible')
            if field is not None:
                field.click()
                page.keyboard.type(text)
                return
        except Exception as e:
            last_error = e
        raise ActionExecutionError(f'Could not type into "{target}": {last_error}', action="type", target=target)

    def scroll(self, direction: str, amount: int = 300) -> None:
        delta = amount if direction == "down" else -amount
        self.page.mouse.wheel(0, delta)
        self.page.wait_for_timeout(SCROLL_SETTLE_MS)

    def _first_success(self, strategies: list[Callable[[], Any]]) -> Exception | None:
        last_error: Exception | None = RuntimeError("element not found")
        for strategy in strategies:
            try:
                strategy()
                return None
            except Exception as e:
                last_error = e
        return last_error

    def _settle(self) -> None:
        try:
            self.page.wait_for_load_state("networkidle", timeout=SETTLE_TIMEOUT_MS)
        except Exception as e:
            logger.debug("Page did not settle after click: %s", e)


def get_browser_surface() -> BrowserSurface:
    from app.config import get_settings

    settings = get_settings()
    return BrowserSurface(
        headless=settings.browser_headless,
        navigation_timeout_ms=settings.browser_navigation_timeout_ms,
    )
