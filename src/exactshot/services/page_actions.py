"""
Best-effort page adaptation for the capture target.

Each action inspects the page, interacts if the relevant control exists,
and reports a tagged ActionResult:

- SUCCESS: the interaction was performed
- SKIPPED: the control is not on the page, nothing to do
- FAILED: the control exists but the interaction errored

Actions never abort a capture. run_page_actions() runs them in order and
logs every outcome in the same format; run_step() wraps the scroll and
overlay steps the same way.
"""

from collections.abc import Awaitable, Callable, Sequence

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from exactshot.config import constants
from exactshot.models.capture import ActionResult, StepOutcome

PageAction = Callable[[Page, int], Awaitable[ActionResult]]


async def dismiss_consent(page: Page, click_timeout_ms: int) -> ActionResult:
    """Click the cookie consent button if one becomes visible.

    The wait for the button uses the consent timeout passed as
    click_timeout_ms by the capture routine.
    """
    name = "dismiss_consent"
    button = page.locator(constants.CONSENT_SELECTOR).first

    try:
        await button.wait_for(state="visible", timeout=click_timeout_ms)
    except PlaywrightTimeoutError:
        return ActionResult(name=name, outcome=StepOutcome.SKIPPED, detail="No consent popup found")

    try:
        await button.click(force=True)
    except PlaywrightError as e:
        return ActionResult(name=name, outcome=StepOutcome.FAILED, detail=str(e))

    await page.wait_for_timeout(constants.CONSENT_DISMISS_DELAY_MS)
    return ActionResult(name=name, outcome=StepOutcome.SUCCESS, detail="Clicked Consent button")


async def switch_language(page: Page, click_timeout_ms: int) -> ActionResult:
    """Open the KR language menu and pick EN."""
    name = "switch_language"

    trigger = await page.query_selector(constants.LANGUAGE_TRIGGER_SELECTOR)
    if trigger is None:
        return ActionResult(
            name=name,
            outcome=StepOutcome.SKIPPED,
            detail="Language dropdown not found, continuing with current language",
        )

    try:
        await trigger.click(timeout=click_timeout_ms)
        await page.wait_for_timeout(constants.LANGUAGE_MENU_DELAY_MS)

        option = await page.query_selector(constants.LANGUAGE_OPTION_SELECTOR)
        if option is None:
            return ActionResult(
                name=name, outcome=StepOutcome.SKIPPED, detail="EN option not found in dropdown"
            )

        await option.click(timeout=click_timeout_ms)
        await page.wait_for_timeout(constants.LANGUAGE_APPLY_DELAY_MS)
    except PlaywrightError as e:
        return ActionResult(name=name, outcome=StepOutcome.FAILED, detail=str(e))

    return ActionResult(name=name, outcome=StepOutcome.SUCCESS, detail="Language switched to English")


async def select_exchange(page: Page, click_timeout_ms: int) -> ActionResult:
    """Open the base exchange dropdown and select Upbit KRW."""
    name = "select_exchange"
    await page.wait_for_timeout(constants.EXCHANGE_SETTLE_DELAY_MS)

    opened_with = None
    for selector in constants.EXCHANGE_SELECTORS:
        button = await page.query_selector(selector)
        if button is None:
            continue
        try:
            await button.click(timeout=click_timeout_ms)
        except PlaywrightError as e:
            logger.debug(f"Exchange selector {selector} not clickable: {e}")
            continue
        opened_with = selector
        await page.wait_for_timeout(constants.EXCHANGE_MENU_DELAY_MS)
        break

    if opened_with is None:
        return ActionResult(
            name=name, outcome=StepOutcome.SKIPPED, detail="Could not open exchange dropdown"
        )

    await page.wait_for_timeout(constants.EXCHANGE_OPTION_DELAY_MS)
    try:
        await page.get_by_text(constants.EXCHANGE_OPTION_TEXT).first.click(timeout=click_timeout_ms)
    except PlaywrightError as e:
        return ActionResult(
            name=name,
            outcome=StepOutcome.FAILED,
            detail=f"Opened via {opened_with} but could not select {constants.EXCHANGE_OPTION_TEXT}: {e}",
        )

    await page.wait_for_timeout(constants.EXCHANGE_APPLY_DELAY_MS)
    return ActionResult(
        name=name,
        outcome=StepOutcome.SUCCESS,
        detail=f"Selected {constants.EXCHANGE_OPTION_TEXT} (opened via {opened_with})",
    )


DEFAULT_ACTIONS: tuple[PageAction, ...] = (switch_language, select_exchange)


def _log_outcome(result: ActionResult) -> None:
    message = f"{result.name}: {result.outcome.value}"
    if result.detail:
        message += f" - {result.detail}"

    if result.outcome is StepOutcome.FAILED:
        logger.warning(message)
    else:
        logger.info(message)


async def run_page_actions(
    page: Page,
    actions: Sequence[tuple[PageAction, int]],
) -> list[ActionResult]:
    """Run page actions in order, never raising.

    Args:
        page: Page to adapt
        actions: (action, timeout_ms) pairs

    Returns:
        One ActionResult per action
    """
    results = []
    for action, timeout_ms in actions:
        try:
            result = await action(page, timeout_ms)
        except Exception as e:
            # Unexpected errors still must not abort the capture
            result = ActionResult(name=action.__name__, outcome=StepOutcome.FAILED, detail=str(e))

        _log_outcome(result)
        results.append(result)

    return results


async def run_step(name: str, step: Callable[[], Awaitable[str]]) -> ActionResult:
    """Run one best-effort page step (scroll, overlay) and log its outcome.

    The step returns a detail string on success. Browser errors are
    reported as FAILED so the screenshot is still taken.
    """
    try:
        detail = await step()
        result = ActionResult(name=name, outcome=StepOutcome.SUCCESS, detail=detail)
    except PlaywrightError as e:
        result = ActionResult(name=name, outcome=StepOutcome.FAILED, detail=str(e))

    _log_outcome(result)
    return result
