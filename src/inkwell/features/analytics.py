"""Click report for a share link, computed from raw click events."""

from collections import Counter
from collections.abc import Sequence

from pydantic import BaseModel, Field

from inkwell.core.types import ClickEvent


def classify_browser(client_signature: str) -> str:
    # Edge and Chrome both advertise "Chrome"; Chrome also advertises "Safari".
    if "Edg" in client_signature:
        return "Edge"
    if "Firefox" in client_signature:
        return "Firefox"
    if "Chrome" in client_signature:
        return "Chrome"
    if "Safari" in client_signature:
        return "Safari"
    return "Other"


def classify_device(client_signature: str) -> str:
    if "Tablet" in client_signature or "iPad" in client_signature:
        return "Tablet"
    if "Mobile" in client_signature:
        return "Mobile"
    return "Desktop"


class ClickSummary(BaseModel):
    total_clicks: int = 0
    unique_addresses: int = 0
    browsers: dict[str, int] = Field(default_factory=dict)
    devices: dict[str, int] = Field(default_factory=dict)
    last_click_at: str | None = None

    @property
    def unique_ratio(self) -> float:
        """Share of clicks coming from distinct addresses, between 0 and 1."""
        if not self.total_clicks:
            return 0.0
        return self.unique_addresses / self.total_clicks


def summarize_clicks(events: Sequence[ClickEvent]) -> ClickSummary:
    """Aggregate click events into visitor, browser and device counts."""
    if not events:
        return ClickSummary()

    browsers = Counter(classify_browser(event.client_signature) for event in events)
    devices = Counter(classify_device(event.client_signature) for event in events)
    return ClickSummary(
        total_clicks=len(events),
        unique_addresses=len({event.address for event in events}),
        browsers=dict(browsers.most_common()),
        devices=dict(devices.most_common()),
        last_click_at=max(event.timestamp for event in events),
    )
