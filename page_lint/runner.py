"""Visit a list of URLs in a real browser and collect their issues.

Usage:
    pages = asyncio.run(lint_urls(["http://localhost:3456/"], Options()))
"""

import logging
from typing import Any

from playwright.async_api import async_playwright

from page_lint.adapter import init_collector
from page_lint.config import Options
from page_lint.models import PageReport

logger = logging.getLogger(__name__)


async def lint_urls(urls: list[str], options: Options, validator: Any = None) -> list[PageReport]:
    """Load each URL in turn in one browser context and return the sorted report."""
    async with async_playwright() as playwright:
        browser_type = getattr(playwright, options.browser)
        browser = await browser_type.launch(headless=options.headless)
        try:
            context, collector = init_collector(await browser.new_context(), options, validator)
            page = await context.new_page()

            for url in urls:
                logger.info("Visiting %s", url)
                await page.goto(url)
                await collector.wait_for_collection()

            return await collector.dump()
        finally:
            await browser.close()
