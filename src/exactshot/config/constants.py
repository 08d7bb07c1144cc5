"""Selectors, page scripts, and naming constants for the capture routine."""

# Screenshot naming: screenshot-<ISO8601 with ':' and '.' replaced by '-'>.png
SCREENSHOT_PREFIX = "screenshot-"
SCREENSHOT_SUFFIX = ".png"

# Fallback wait condition when the primary one times out
FALLBACK_WAIT_UNTIL = "load"

# Cookie consent
CONSENT_SELECTOR = 'button:has-text("Consent")'
CONSENT_DISMISS_DELAY_MS = 2000

# Language switch (KR dropdown -> EN option)
LANGUAGE_TRIGGER_SELECTOR = "text=KR"
LANGUAGE_OPTION_SELECTOR = "text=EN"
LANGUAGE_MENU_DELAY_MS = 500
LANGUAGE_APPLY_DELAY_MS = 1000

# Base exchange dropdown. Whichever label is currently shown opens the menu.
EXCHANGE_SELECTORS: list[str] = [
    "text=Bithumb KRW",
    "text=Upbit KRW",
    "text=Coinone KRW",
    'button:has-text("KRW")',
]
EXCHANGE_OPTION_TEXT = "Upbit KRW"
EXCHANGE_SETTLE_DELAY_MS = 1500  # after language change
EXCHANGE_MENU_DELAY_MS = 1000
EXCHANGE_OPTION_DELAY_MS = 500
EXCHANGE_APPLY_DELAY_MS = 1000

SCROLL_SCRIPT = "() => window.scrollBy(0, window.innerHeight / 2)"

OVERLAY_ELEMENT_ID = "screenshot-timestamp-overlay"

# Receives {dateLine, timeLine, showTimezone}; the timezone is resolved by the
# browser so the overlay names the zone the page actually rendered in.
OVERLAY_SCRIPT = """
(data) => {
  const existing = document.getElementById('%(id)s');
  if (existing) existing.remove();

  let timeLine = data.timeLine;
  if (data.showTimezone) {
    timeLine += ' ' + Intl.DateTimeFormat().resolvedOptions().timeZone;
  }

  const overlay = document.createElement('div');
  overlay.id = '%(id)s';
  overlay.innerHTML = `${data.dateLine}<br>${timeLine}`;
  overlay.style.cssText = `
    position: fixed;
    bottom: 60%%;
    right: 20px;
    background: rgba(0, 0, 0, 0.9);
    color: #00ff00;
    padding: 15px 20px;
    border-radius: 8px;
    font-family: 'Courier New', monospace;
    font-size: 16px;
    font-weight: bold;
    z-index: 999999;
    box-shadow: 0 4px 15px rgba(0, 0, 0, 0.6);
    border: 2px solid #00ff00;
    line-height: 1.5;
    text-align: center;
    white-space: nowrap;
  `;
  document.body.appendChild(overlay);
}
""" % {"id": OVERLAY_ELEMENT_ID}

# Timezones offered by the scheduling UI
UI_TIMEZONES: list[str] = [
    "Asia/Hong_Kong",
    "Asia/Seoul",
    "Asia/Tokyo",
    "Asia/Singapore",
    "Asia/Shanghai",
    "Europe/London",
    "Europe/Berlin",
    "America/New_York",
    "America/Chicago",
    "America/Los_Angeles",
    "UTC",
]
