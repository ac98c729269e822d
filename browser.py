"""Playwright browser controller with selector-based interaction and intelligent waiting."""
from __future__ import annotations

import logging
from typing import Any, Literal, Optional, Sequence

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
    TimeoutError as PlaywrightTimeout,
)

from exceptions import (
    BrowserNotStartedError,
    ElementNotFoundError,
    GatewayError,
    NavigationError,
)

BrowserType = Literal["chromium", "firefox", "webkit"]


class SimpleBrowser:
    """Single-page Playwright session addressed by CSS selectors."""

    def __init__(
        self,
        browser_type: BrowserType = "chromium",
        headless: bool = True,
        viewport_width: int = 1440,
        viewport_height: int = 900,
        slow_mo: int = 0,
        action_timeout: float = 10000,
        navigation_timeout: float = 30000,
        logger: Optional[logging.Logger] = None,
    ):
        self.browser_type = browser_type
        self.headless = headless
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.slow_mo = slow_mo
        self.action_timeout = action_timeout
        self.navigation_timeout = navigation_timeout
        self.logger = logger or logging.getLogger("browser")

        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    @property
    def started(self) -> bool:
        return self.page is not None

    def _ensure_started(self) -> None:
        """Raise if browser not started."""
        if self.page is None:
            raise BrowserNotStartedError()

    async def start(self) -> None:
        """Start the browser with specified engine."""
        self._playwright = await async_playwright().start()

        browser_launcher = getattr(self._playwright, self.browser_type)
        launch_options: dict[str, Any] = {"headless": self.headless}
        if self.slow_mo > 0:
            launch_options["slow_mo"] = self.slow_mo

        self.browser = await browser_launcher.launch(**launch_options)
        self.context = await self.browser.new_context(
            viewport={"width": self.viewport_width, "height": self.viewport_height}
        )
        self.page = await self.context.new_page()
        self.page.set_default_timeout(self.action_timeout)

        self.logger.info(f"Browser started: {self.browser_type} (headless={self.headless})")

    async def close(self) -> None:
        """Close the browser and clean up resources, tolerating partial starts."""
        for name in ("page", "context", "browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                self.logger.warning(f"Failed to close {name}: {e}")
            setattr(self, name, None)
        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.warning(f"Failed to stop Playwright: {e}")
            self._playwright = None
        self.logger.info("Browser closed")

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation with intelligent waiting
    # ─────────────────────────────────────────────────────────────────────────

    async def goto(
        self,
        url: str,
        wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "load",
    ) -> None:
        """Navigate to a URL with configurable wait strategy."""
        self._ensure_started()
        try:
            await self.page.goto(url, wait_until=wait_until, timeout=self.navigation_timeout)
        except PlaywrightTimeout as e:
            raise NavigationError(f"Navigation timed out: {url}", url=url, timeout=self.navigation_timeout) from e
        except Exception as e:
            raise NavigationError(f"Navigation failed: {e}", url=url) from e

    async def wait_for_load_state(
        self,
        state: Literal["load", "domcontentloaded", "networkidle"] = "load",
        timeout: float = 5000,
    ) -> bool:
        """Wait for page to reach specified load state. Returns False on timeout."""
        self._ensure_started()
        try:
            await self.page.wait_for_load_state(state, timeout=timeout)
            return True
        except PlaywrightTimeout:
            return False

    # ─────────────────────────────────────────────────────────────────────────
    # Element targeting and interaction
    # ─────────────────────────────────────────────────────────────────────────

    async def find_selector(self, candidates: Sequence[str]) -> Optional[str]:
        """Return the first candidate selector that matches an element on the page."""
        self._ensure_started()
        for selector in candidates:
            try:
                if await self.page.locator(selector).count() > 0:
                    return selector
            except Exception as e:
                # Invalid selector syntax for this engine
                self.logger.debug(f"Selector {selector!r} rejected: {e}")
        return None

    async def _resolve(self, candidates: Sequence[str], target: str, action: str) -> str:
        selector = await self.find_selector(candidates)
        if selector is None:
            raise ElementNotFoundError(
                f"No element found for {target}",
                target=target,
                selectors=list(candidates),
                action=action,
            )
        return selector

    async def click(self, candidates: Sequence[str], target: str) -> str:
        """Click the first matching element. Returns the selector used."""
        selector = await self._resolve(candidates, target, "click")
        try:
            await self.page.locator(selector).first.click(timeout=self.action_timeout)
        except PlaywrightTimeout as e:
            raise GatewayError(f"Click on {target} timed out", action="click") from e
        return selector

    async def fill(self, candidates: Sequence[str], target: str, text: str) -> str:
        """Replace the value of the first matching input."""
        selector = await self._resolve(candidates, target, "fill_field")
        try:
            await self.page.locator(selector).first.fill(text, timeout=self.action_timeout)
        except PlaywrightTimeout as e:
            raise GatewayError(f"Typing into {target} timed out", action="fill_field") from e
        return selector

    async def select_option(self, candidates: Sequence[str], target: str, value: str) -> list[str]:
        """Select an option by value, falling back to its visible label."""
        selector = await self._resolve(candidates, target, "select_option")
        locator = self.page.locator(selector).first
        try:
            try:
                return await locator.select_option(value=value, timeout=self.action_timeout)
            except PlaywrightTimeout:
                return await locator.select_option(label=value, timeout=self.action_timeout)
        except PlaywrightTimeout as e:
            raise GatewayError(f"Option {value!r} not selectable in {target}", action="select_option") from e

    async def click_text(self, label: str) -> None:
        """Click a button or link by its visible text."""
        self._ensure_started()
        for role in ("button", "link"):
            locator = self.page.get_by_role(role, name=label)
            if await locator.count() > 0:
                await locator.first.click(timeout=self.action_timeout)
                return
        locator = self.page.get_by_text(label, exact=False)
        if await locator.count() == 0:
            raise ElementNotFoundError(f"No element labelled {label!r}", target=label, action="click")
        try:
            await locator.first.click(timeout=self.action_timeout)
        except PlaywrightTimeout as e:
            raise GatewayError(f"Click on {label!r} timed out", action="click") from e

    # ─────────────────────────────────────────────────────────────────────────
    # Page content extraction
    # ─────────────────────────────────────────────────────────────────────────

    def get_url(self) -> str:
        """Get current URL."""
        self._ensure_started()
        return self.page.url

    async def get_body_text(self, max_len: int = 20000) -> str:
        """Return the visible body text of the page."""
        self._ensure_started()
        try:
            text = await self.page.evaluate("() => document.body ? document.body.innerText : ''")
        except Exception as e:
            raise GatewayError(f"Could not read page text: {e}", action="read_page") from e
        return (text or "")[:max_len]

