import json
import re

import pytest

from inkwell.core.types import ClickEvent

CLICKS = "/repos/octocat/inkwell-posts/contents/analytics/clicks"
CHROME = "Mozilla/5.0 (Windows NT 10.0) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


def _click(link_id: str, ip: str = "1.2.3.4", timestamp: str = "2024-03-15T09:30:00.000Z") -> str:
    return json.dumps({"linkId": link_id, "timestamp": timestamp, "ip": ip, "userAgent": CHROME})


@pytest.fixture
def repo(github):
    github.repos.add("inkwell-posts")
    return github


@pytest.mark.asyncio
async def test_record_click_writes_one_file(repo, stores):
    event = await stores.analytics.record_click("abc", "1.2.3.4", CHROME, location="Lisbon")

    assert isinstance(event, ClickEvent)
    (path,) = [p for p in repo.files if p.startswith("analytics/clicks/")]
    assert re.fullmatch(r"analytics/clicks/abc-\d+\.json", path)
    record = json.loads(repo.text(path))
    assert record == {
        "linkId": "abc",
        "timestamp": event.timestamp,
        "ip": "1.2.3.4",
        "userAgent": CHROME,
        "location": "Lisbon",
    }


@pytest.mark.asyncio
async def test_record_click_never_overwrites(repo, stores):
    for _ in range(3):
        await stores.analytics.record_click("abc", "1.2.3.4", CHROME)

    assert len([p for p in repo.files if p.startswith("analytics/clicks/abc-")]) == 3


@pytest.mark.asyncio
async def test_record_click_failure_is_swallowed(github, stores):
    # The repository does not exist, so the write is rejected.
    assert await stores.analytics.record_click("abc", "1.2.3.4", CHROME) is None
    assert not github.files


@pytest.mark.asyncio
async def test_list_clicks(repo, stores):
    await stores.analytics.record_click("abc", "1.1.1.1", CHROME)
    await stores.analytics.record_click("abc", "2.2.2.2", CHROME)

    events = await stores.analytics.list_clicks("abc")

    assert sorted(event.address for event in events) == ["1.1.1.1", "2.2.2.2"]
    assert all(event.link_id == "abc" for event in events)


@pytest.mark.asyncio
async def test_list_clicks_ignores_links_sharing_a_prefix(repo, stores):
    repo.put_file("analytics/clicks/abc-1.json", _click("abc"))
    repo.put_file("analytics/clicks/abcd-2.json", _click("abcd"))

    events = await stores.analytics.list_clicks("abc")

    assert [event.link_id for event in events] == ["abc"]


@pytest.mark.asyncio
async def test_list_clicks_drops_corrupt_events(repo, stores):
    repo.put_file("analytics/clicks/abc-1.json", _click("abc"))
    repo.put_file("analytics/clicks/abc-2.json", "{not json")
    repo.put_file("analytics/clicks/abc-3.json", '{"linkId": "abc"}')

    events = await stores.analytics.list_clicks("abc")

    assert len(events) == 1


@pytest.mark.asyncio
async def test_list_clicks_without_any_clicks(repo, stores):
    assert await stores.analytics.list_clicks("abc") == []


@pytest.mark.asyncio
async def test_list_clicks_listing_failure(repo, stores):
    repo.fail("GET", CLICKS, 500)

    assert await stores.analytics.list_clicks("abc") == []
