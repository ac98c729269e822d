"""Automation gateway: executes abstract actions against one live browser session."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Optional

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from browser import SimpleBrowser
from config import ApplicationConfig, BrowserConfig
from exceptions import GatewayError, SessionStartError
from test_types import AbstractAction, Click, FillField, Navigate, PageSnapshot, ReadPage, SelectOption


class AutomationGateway(ABC):
    """One exclusive browser session.

    ``execute`` runs each action at most once and returns the page snapshot
    observed afterwards; every failure surfaces as ``GatewayError``.
    """

    @abstractmethod
    async def start(self) -> None:
        """Establish the session; raises SessionStartError when impossible."""

    @abstractmethod
    async def close(self) -> None:
        """Release the session. Safe to call more than once."""

    @abstractmethod
    async def execute(self, action: AbstractAction) -> PageSnapshot:
        """Perform ``action`` and return the resulting page snapshot."""

    async def __aenter__(self) -> "AutomationGateway":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class PlaywrightGateway(AutomationGateway):
    """Gateway backed by a Playwright browser, resolving semantic targets via config selectors."""

    def __init__(
        self,
        browser_config: BrowserConfig,
        application: ApplicationConfig,
        start_attempts: int = 3,
        start_wait: Optional[wait_base] = None,
        browser: Optional[SimpleBrowser] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.browser_config = browser_config
        self.application = application
        self.start_attempts = start_attempts
        self.start_wait = start_wait or wait_exponential(multiplier=1.0, min=1.0, max=10)
        self.logger = logger or logging.getLogger("gateway")
        self.browser = browser or SimpleBrowser(
            browser_type=browser_config.browser,
            headless=browser_config.headless,
            viewport_width=browser_config.viewport_width,
            viewport_height=browser_config.viewport_height,
            slow_mo=browser_config.slow_mo,
            action_timeout=browser_config.action_timeout_ms,
            navigation_timeout=browser_config.navigation_timeout_ms,
            logger=self.logger,
        )
        self._handlers: Dict[str, Callable[[AbstractAction], Awaitable[None]]] = {
            Navigate.name: self._navigate,
            FillField.name: self._fill_field,
            Click.name: self._click,
            SelectOption.name: self._select_option,
            ReadPage.name: self._read_page,
        }

    async def start(self) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.start_attempts),
                wait=self.start_wait,
                reraise=True,
            ):
                with attempt:
                    try:
                        await self.browser.start()
                    except Exception:
                        await self.browser.close()
                        raise
        except Exception as exc:
            raise SessionStartError(
                f"Could not establish browser session: {exc}",
                attempts=self.start_attempts,
            ) from exc

    async def close(self) -> None:
        await self.browser.close()

    async def execute(self, action: AbstractAction) -> PageSnapshot:
        handler = self._handlers.get(action.name)
        if handler is None:
            raise GatewayError(f"Unknown action type: {action.name}", action=action.name)
        self.logger.debug(f"Executing {action.name} {self._describe(action)}")
        try:
            await handler(action)
            return await self.snapshot()
        except GatewayError:
            raise
        except Exception as exc:
            raise GatewayError(f"{action.name} failed: {exc}", action=action.name) from exc

    async def snapshot(self) -> PageSnapshot:
        text = await self.browser.get_body_text(self.browser_config.max_text_length)
        return PageSnapshot(text_content=text, url=self.browser.get_url())

    def _describe(self, action: AbstractAction) -> str:
        args = dict(action.arguments)
        if args.get("field") == "password":
            args["value"] = "*" * len(str(args.get("value", "")))
        return str(args)

    async def _navigate(self, action: Navigate) -> None:
        await self.browser.goto(action.url)

    async def _fill_field(self, action: FillField) -> None:
        await self.browser.fill(
            self.application.selectors_for(action.field_kind),
            action.field_kind,
            action.value,
        )

    async def _click(self, action: Click) -> None:
        candidates = self.application.selectors_for(action.target_kind)
        if candidates:
            await self.browser.click(candidates, action.target_kind)
        else:
            await self.browser.click_text(action.target_kind)
        await self.browser.wait_for_load_state()

    async def _select_option(self, action: SelectOption) -> None:
        await self.browser.select_option(
            self.application.selectors_for(action.dropdown_kind),
            action.dropdown_kind,
            action.value,
        )

    async def _read_page(self, action: ReadPage) -> None:
        await self.browser.wait_for_load_state()
