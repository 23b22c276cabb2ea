"""Tests for application wiring and the CLI commands."""

from unittest.mock import patch

import pytest

from songqueue.cli import render_search_page, run_search
from songqueue.context import AppContext
from songqueue.core.config import Config
from songqueue.core.storage import MemoryKeyValueStore
from songqueue.domain.catalog.exceptions import CatalogRequestError
from songqueue.domain.catalog.models import SearchPage
from songqueue.domain.playback.persistence import (
    LAST_TRACK_KEY,
    QUEUE_KEY,
    encode_queue,
    encode_track,
)


@pytest.mark.anyio
async def test_context_restores_and_closes(fake_backend, track_factory) -> None:
    a, b = track_factory("A"), track_factory("B")
    store = MemoryKeyValueStore(
        {QUEUE_KEY: encode_queue([a, b]), LAST_TRACK_KEY: encode_track(b)}
    )
    ctx = AppContext.create(Config(), store=store, backend=fake_backend)

    await ctx.start()
    assert ctx.coordinator.state.current_track == b
    assert not ctx.coordinator.state.is_playing

    await ctx.coordinator.play_previous()
    assert ctx.coordinator.state.current_track == a
    await ctx.close()
    assert not ctx.transport.is_loaded


@pytest.mark.anyio
async def test_playing_after_restore_keeps_saved_queue(fake_backend, track_factory) -> None:
    a, b, c = track_factory("A"), track_factory("B"), track_factory("C")
    store = MemoryKeyValueStore(
        {QUEUE_KEY: encode_queue([a, b]), LAST_TRACK_KEY: encode_track(b)}
    )
    ctx = AppContext.create(Config(), store=store, backend=fake_backend)

    await ctx.start()
    await ctx.coordinator.play_track(c)

    assert [t.id for t in ctx.coordinator.queue] == ["A", "B", "C"]
    assert ctx.coordinator.state.cursor == 2
    await ctx.close()


def test_context_uses_config(fake_backend) -> None:
    config = Config()
    config.player.status_interval_ms = 250
    ctx = AppContext.create(config, store=MemoryKeyValueStore(), backend=fake_backend)

    assert ctx.transport._status_interval == 0.25
    assert ctx.catalog.config is config.catalog


def test_render_search_page(track_factory) -> None:
    table = render_search_page(SearchPage(items=[track_factory("A")], total=1), "songs")
    assert table.row_count == 1
    assert len(table.columns) == 4


def test_render_search_page_with_artwork(track_factory) -> None:
    page = SearchPage(items=[track_factory("A"), track_factory("B")], total=2)
    table = render_search_page(page, "songs", artwork_url=lambda t: f"art-{t.id}")

    assert len(table.columns) == 5
    assert table.columns[-1].header == "Artwork"
    assert list(table.columns[-1].cells) == ["art-A", "art-B"]


def test_run_search_shows_artwork_in_configured_quality(track_factory) -> None:
    config = Config()
    config.catalog.preferred_image_quality = "150x150"
    page = SearchPage(items=[track_factory("A")], total=1)
    with patch("songqueue.cli.CatalogClient.search_songs", return_value=page), patch(
        "songqueue.cli.render_search_page", wraps=render_search_page
    ) as render, patch("songqueue.cli.get_console"):
        assert run_search(config, "x", "songs", 1, show_artwork=True) == 0

    artwork_url = render.call_args.args[2]
    assert artwork_url.__self__.config.preferred_image_quality == "150x150"


def test_run_search_reports_failure() -> None:
    with patch(
        "songqueue.cli.CatalogClient.search_songs",
        side_effect=CatalogRequestError("Request failed: 500", status_code=500),
    ):
        assert run_search(Config(), "x", "songs", 1) == 1


def test_run_search_no_results() -> None:
    with patch("songqueue.cli.CatalogClient.search_artists", return_value=SearchPage(items=[])):
        assert run_search(Config(), "x", "artists", 1) == 0
