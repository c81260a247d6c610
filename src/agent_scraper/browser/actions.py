"""
Common browser actions.

Reusable page operations: scrolling to trigger lazy rendering and hiding
automation fingerprints.
"""

from playwright.async_api import BrowserContext, Page

from agent_scraper.utils.logging import get_logger

logger = get_logger(__name__)


# Removes the navigator.webdriver flag before any page script runs.
HIDE_WEBDRIVER_SCRIPT = """
() => {
    try {
        Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
    } catch (e) {}
}
"""


async def scroll_to_bottom(
    page: Page,
    step_pixels: int = 500,
    delay_ms: int = 500,
    max_scrolls: int = 50,
) -> int:
    """
    Scroll to the bottom of the page step by step, then back to the top.

    Stops when the document stops growing or after max_scrolls steps.

    Returns:
        Number of scroll steps performed
    """
    scrolls = 0
    previous_height = 0
    current_height = await page.evaluate("() => document.body.scrollHeight")

    while previous_height < current_height and scrolls < max_scrolls:
        previous_height = current_height
        await page.evaluate("(step) => window.scrollBy(0, step)", step_pixels)
        scrolls += 1

        if delay_ms > 0:
            await page.wait_for_timeout(delay_ms)

        current_height = await page.evaluate("() => document.body.scrollHeight")

    await page.evaluate("() => window.scrollTo(0, 0)")
    return scrolls


async def apply_stealth(
    context: BrowserContext,
    accept_language: str | None = None,
    mask_webdriver: bool = True,
) -> None:
    """
    Make a fresh context look less like an automated browser.

    Args:
        context: Newly created browser context
        accept_language: Accept-Language header value (None = leave default)
        mask_webdriver: Install the navigator.webdriver override
    """
    if accept_language:
        await context.set_extra_http_headers({"accept-language": accept_language})

    if mask_webdriver:
        await context.add_init_script(f"({HIDE_WEBDRIVER_SCRIPT})()")
