"""
Browser configuration for placement scraping.

Validated launch and context settings for the browser owned by
BrowserSession. Every context presents the same desktop fingerprint; the
navigator languages and ``Accept-Language`` header follow the context locale.
"""
import json
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from netlink_scraper.constants import (
    DEFAULT_LOCALE,
    DEFAULT_TIMEZONE,
    DEFAULT_USER_AGENT,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
)


DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-web-security",
    "--window-size=1920,1080",
    "--disable-infobars",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

# Sent with every navigation; Accept-Language is added per locale
DEFAULT_EXTRA_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Encoding": "gzip, deflate, br",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}

_MASK_AUTOMATION_TEMPLATE = """
    Object.defineProperty(navigator, 'webdriver', {{ get: () => false }});
    window.chrome = {{ runtime: {{}} }};

    const queryPermission = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications'
            ? Promise.resolve({{ state: Notification.permission }})
            : queryPermission(parameters)
    );

    Object.defineProperty(navigator, 'plugins', {{ get: () => [1, 2, 3, 4, 5] }});
    Object.defineProperty(navigator, 'languages', {{ get: () => {languages} }});
"""


def navigator_languages(locale: str) -> List[str]:
    """Language list for ``locale``, falling back to English.

    >>> navigator_languages("fr-FR")
    ['fr-FR', 'fr', 'en-US', 'en']
    """
    languages: List[str] = []
    for language in (locale, locale.split("-")[0], "en-US", "en"):
        if language and language not in languages:
            languages.append(language)
    return languages


def accept_language(locale: str) -> str:
    """``Accept-Language`` value with descending quality per language."""
    parts = []
    for index, language in enumerate(navigator_languages(locale)):
        if index == 0:
            parts.append(language)
        else:
            parts.append(f"{language};q={1 - index / 10:.1f}")
    return ",".join(parts)


class BrowserConfig(BaseModel):
    """
    Configuration for the browser launched by BrowserSession.

    All fields are validated by Pydantic.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Playwright engine to launch"
    )

    launch_args: List[str] = Field(
        default_factory=lambda: list(DEFAULT_LAUNCH_ARGS),
        description="Command-line flags passed at launch"
    )

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent for new contexts"
    )

    viewport_width: int = Field(
        default=DESKTOP_VIEWPORT_WIDTH,
        description="Viewport width in pixels",
        ge=320,
        le=7680
    )

    viewport_height: int = Field(
        default=DESKTOP_VIEWPORT_HEIGHT,
        description="Viewport height in pixels",
        ge=240,
        le=4320
    )

    locale: str = Field(
        default=DEFAULT_LOCALE,
        description="Context locale, also drives navigator languages",
        min_length=2
    )

    timezone_id: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Context timezone"
    )

    extra_http_headers: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_EXTRA_HTTP_HEADERS),
        description="Headers sent with every request of a context"
    )

    mask_automation: bool = Field(
        default=True,
        description="Inject the automation-masking script into new contexts"
    )

    class Config:
        validate_assignment = True

    def launch_options(self) -> Dict[str, object]:
        """Keyword arguments for ``BrowserType.launch``."""
        options: Dict[str, object] = {"headless": self.headless}
        if self.launch_args:
            options["args"] = list(self.launch_args)
        return options

    def context_options(
        self,
        user_agent: Optional[str] = None,
        viewport: Optional[Dict[str, int]] = None,
        locale: Optional[str] = None,
        timezone_id: Optional[str] = None,
    ) -> Dict[str, object]:
        """Keyword arguments for ``Browser.new_context`` with per-call overrides."""
        locale = locale or self.locale
        headers = {"Accept-Language": accept_language(locale)}
        headers.update(self.extra_http_headers)

        return {
            "user_agent": user_agent or self.user_agent,
            "viewport": viewport or {
                "width": self.viewport_width,
                "height": self.viewport_height,
            },
            "locale": locale,
            "timezone_id": timezone_id or self.timezone_id,
            "extra_http_headers": headers,
        }

    def mask_automation_script(self, locale: Optional[str] = None) -> str:
        """Init script hiding common automation markers for ``locale``."""
        languages = navigator_languages(locale or self.locale)
        return _MASK_AUTOMATION_TEMPLATE.format(languages=json.dumps(languages))
