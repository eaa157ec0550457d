import json

import pytest

from gaia_storage.core.errors import (
    ListFilesError,
    MalformedListResponseError,
    TooManyPagesError,
)
from gaia_storage.core.options import PutFileOptions
from gaia_storage.core.storage import MAX_LIST_PAGES

from .conftest import ALICE_KEY, address_of

TWO_PAGES = {
    None: {"entries": ["a", "b"], "page": "p2"},
    "p2": {"entries": ["c", "d"], "page": None},
}


async def test_lists_stored_files(alice):
    for name in ["b.txt", "a.txt", "dir/c.txt"]:
        await alice.put_file(name, "x", PutFileOptions(encrypt=False))

    names = []
    count = await alice.list_files(lambda name: names.append(name) or True)
    assert count == 3
    assert names == ["a.txt", "b.txt", "dir/c.txt"]


async def test_walks_every_page(alice, hub):
    hub.list_pages = TWO_PAGES
    names = []
    assert await alice.list_files(lambda name: names.append(name) or True) == 4
    assert names == ["a", "b", "c", "d"]
    assert hub.count("/list-files/") == 2


async def test_callback_stops_listing(alice, hub):
    hub.list_pages = dict(TWO_PAGES, p2={"entries": ["c", "d"], "page": "p3"})
    seen = []

    def callback(name):
        seen.append(name)
        return len(seen) < 3

    assert await alice.list_files(callback) == 3
    assert seen == ["a", "b", "c"]
    assert hub.count("/list-files/") == 2


async def test_async_callback(alice, hub):
    hub.list_pages = TWO_PAGES

    async def callback(name):
        return name != "b"

    assert await alice.list_files(callback) == 2


async def test_empty_page_with_cursor_ends_listing(alice, hub):
    hub.list_pages = {
        None: {"entries": ["a"], "page": "p2"},
        "p2": {"entries": [], "page": "p3"},
    }
    assert await alice.list_files(lambda name: True) == 1
    assert hub.count("/list-files/") == 2


async def test_sends_cursor_and_token(alice, hub):
    hub.list_pages = TWO_PAGES
    await alice.list_files(lambda name: True)

    requests = [r for r in hub.requests if r.url.path.startswith("/list-files/")]
    assert [json.loads(r.content) for r in requests] == [{"page": None}, {"page": "p2"}]
    assert requests[0].url.path == f"/list-files/{address_of(ALICE_KEY)}"
    assert requests[0].headers["authorization"].startswith("bearer v1:")


async def test_endless_hub_hits_page_bound(alice, hub):
    hub.list_pages = {None: {"entries": ["a"], "page": "again"},
                      "again": {"entries": ["a"], "page": "again"}}
    with pytest.raises(TooManyPagesError):
        await alice.list_files(lambda name: True, max_pages=5)
    assert hub.count("/list-files/") == 5


async def test_endless_hub_hits_default_page_bound(alice, hub):
    hub.list_pages = {None: {"entries": ["a"], "page": "again"},
                      "again": {"entries": ["a"], "page": "again"}}
    with pytest.raises(TooManyPagesError):
        await alice.list_files(lambda name: True)
    assert MAX_LIST_PAGES == 65536
    assert hub.count("/list-files/") == MAX_LIST_PAGES


@pytest.mark.parametrize("body", [{"page": None}, {"entries": None, "page": None}])
async def test_missing_entries_is_malformed(alice, hub, body):
    hub.list_pages = {None: body}
    with pytest.raises(MalformedListResponseError):
        await alice.list_files(lambda name: True)


async def test_http_failure(alice, hub):
    hub.list_status = 500
    with pytest.raises(ListFilesError) as excinfo:
        await alice.list_files(lambda name: True)
    assert excinfo.value.status == 500


async def test_iter_files(alice, hub):
    hub.list_pages = TWO_PAGES
    assert [name async for name in alice.iter_files()] == ["a", "b", "c", "d"]
