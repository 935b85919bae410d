import asyncio
import logging

from pydantic import ValidationError

from inkwell.core import conventions
from inkwell.core.exceptions import TransportFailure
from inkwell.core.types import ClickEvent, Lookup
from inkwell.core.utils import unique_token
from inkwell.infra.repository.base import ContentsStore

logger = logging.getLogger(__name__)


class AnalyticsStore(ContentsStore):
    """Append-only click events stored as ``analytics/clicks/{link_id}-{token}.json``."""

    async def record_click(
        self,
        link_id: str,
        address: str,
        client_signature: str,
        location: str | None = None,
    ) -> ClickEvent | None:
        """Record one resolution of a share link.

        Never raises for transport problems: tracking must not get in the way of
        reading. Returns the stored event, or None if it could not be written.
        """
        event = ClickEvent(link_id=link_id, address=address, client_signature=client_signature, location=location)
        text = event.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        try:
            await self.write_file(conventions.click_path(link_id, unique_token()), text, f"Click tracking: {link_id}")
        except TransportFailure as exc:
            logger.warning("Could not record click for %s: %s", link_id, exc)
            return None
        return event

    async def _load_click(self, path: str) -> Lookup[ClickEvent]:
        current = await self.read_file(path)
        if not current.is_found:
            return Lookup.failed(current.error) if current.is_failed else Lookup.absent()
        try:
            return Lookup.found(ClickEvent.model_validate_json(current.value.text))
        except ValidationError as exc:
            return Lookup.failed(exc)

    async def list_clicks(self, link_id: str) -> list[ClickEvent]:
        """Return every readable click of a link; unreadable ones are dropped."""
        try:
            entries = await self.list_dir(conventions.CLICKS_DIR)
        except TransportFailure as exc:
            logger.warning("Could not list clicks: %s", exc)
            return []

        paths = [
            entry.get("path") or f"{conventions.CLICKS_DIR}/{entry['name']}"
            for entry in entries
            if conventions.is_click_of(entry.get("name", ""), link_id)
        ]
        results = await asyncio.gather(*(self._load_click(path) for path in paths))
        return [result.value for result in results if result.is_found]
