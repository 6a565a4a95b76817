"""Tests for the end-to-end pipeline with in-memory collaborators."""

from __future__ import annotations

from datetime import timedelta

import pytest

from gitignore_downloader.cache import JsonCacheStore
from gitignore_downloader.errors import FetchError, SelectionCancelled, UnknownTemplateError
from gitignore_downloader.models import CacheEntry, WriteMode
from gitignore_downloader.pipeline import Request, generate, load_index, run

from conftest import NODE_BODY, NOW, RUST_BODY, FakeSource, MemoryCacheStore, ScriptedPicker


# ── Index loading ────────────────────────────────────────────────────────────


class TestLoadIndex:
    def test_fresh_cache_skips_network(self, fresh_store, source):
        index = load_index(fresh_store, source, ttl_minutes=60, now=NOW + timedelta(minutes=59))
        assert index.names == ["Node", "Rust"]
        assert source.index_calls == 0

    def test_stale_cache_refreshes(self, fresh_store):
        source = FakeSource(index=["Go", "Node", "Rust"])
        later = NOW + timedelta(minutes=61)
        index = load_index(fresh_store, source, ttl_minutes=60, now=later)
        assert index.names == ["Go", "Node", "Rust"]
        assert source.index_calls == 1
        assert fresh_store.saves == 1
        assert fresh_store.entry.fetched_at == later

    def test_absent_cache_fetches_and_saves(self, source):
        store = MemoryCacheStore()
        index = load_index(store, source, now=NOW)
        assert index.names == ["Node", "Rust"]
        assert store.entry is not None
        assert store.entry.names == ["Node", "Rust"]

    def test_future_dated_cache_refreshes(self):
        store = MemoryCacheStore(CacheEntry(names=["Old"], fetched_at=NOW + timedelta(days=3650)))
        source = FakeSource(index=["Go", "Rust"])
        index = load_index(store, source, ttl_minutes=1440, now=NOW)
        assert index.names == ["Go", "Rust"]
        assert source.index_calls == 1
        assert store.entry.fetched_at == NOW

    def test_no_cache_forces_fetch_after_save(self, tmp_path, source):
        store = JsonCacheStore(tmp_path / "types.json")
        load_index(store, source)
        assert source.index_calls == 1
        load_index(store, source)
        assert source.index_calls == 1
        load_index(store, source, use_cache=False)
        assert source.index_calls == 2
        assert store.path.exists()

    def test_no_cache_does_not_read_store(self, fresh_store, source):
        load_index(fresh_store, source, use_cache=False, now=NOW)
        assert fresh_store.loads == 0

    def test_fetch_failure_falls_back_to_stale_cache(self, fresh_store):
        source = FakeSource(index_error=True)
        index = load_index(fresh_store, source, ttl_minutes=1, now=NOW + timedelta(days=30))
        assert index.names == ["Node", "Rust"]
        assert fresh_store.saves == 0

    def test_fetch_failure_without_cache_raises(self):
        with pytest.raises(FetchError):
            load_index(MemoryCacheStore(), FakeSource(index_error=True), now=NOW)

    def test_fetch_failure_with_empty_cache_raises(self):
        store = MemoryCacheStore(CacheEntry(names=[], fetched_at=NOW))
        with pytest.raises(FetchError):
            load_index(store, FakeSource(index_error=True), ttl_minutes=1, now=NOW + timedelta(hours=1))

    def test_fetch_failure_with_no_cache_flag_raises(self, fresh_store):
        with pytest.raises(FetchError):
            load_index(fresh_store, FakeSource(index_error=True), use_cache=False, now=NOW)

    def test_failed_save_is_not_fatal(self, source):
        store = MemoryCacheStore(fail_save=True)
        index = load_index(store, source, now=NOW)
        assert index.names == ["Node", "Rust"]
        assert store.saves == 1


# ── Generation ───────────────────────────────────────────────────────────────


class TestGenerate:
    def test_overwrite_single_template(self, tmp_path, fresh_store, source):
        request = Request(tokens=["Rust"], output=tmp_path / ".gitignore", mode=WriteMode.OVERWRITE)
        doc = generate(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        assert doc.text == "### Rust ###\n" + RUST_BODY

    def test_templates_then_snippets(self, tmp_path, fresh_store, source):
        request = Request(
            tokens=["node", "rust"],
            snippets=["locks", "macos"],
            output=tmp_path / ".gitignore",
            mode=WriteMode.OVERWRITE,
        )
        doc = generate(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        headers = [line for line in doc.text.splitlines() if line.startswith("### ")]
        assert headers == ["### Node ###", "### Rust ###", "### locks ###", "### macos ###"]

    def test_unknown_aborts_before_fetch(self, tmp_path, fresh_store, source):
        target = tmp_path / ".gitignore"
        target.write_text("*.log\n")
        request = Request(tokens=["Rust", "Bogus"], output=target)
        with pytest.raises(UnknownTemplateError) as exc_info:
            run(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        assert exc_info.value.tokens == ["Bogus"]
        assert source.fetched == []
        assert target.read_text() == "*.log\n"

    def test_body_fetch_failure_is_fatal(self, tmp_path, fresh_store):
        source = FakeSource({"Rust": RUST_BODY}, index=["Node", "Rust"])
        target = tmp_path / ".gitignore"
        request = Request(tokens=["Rust", "Node"], output=target)
        with pytest.raises(FetchError):
            run(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        assert not target.exists()

    def test_picker_used_when_no_tokens(self, tmp_path, fresh_store, source):
        picker = ScriptedPicker(["Node"])
        request = Request(output=tmp_path / ".gitignore", mode=WriteMode.OVERWRITE)
        doc = generate(request, store=fresh_store, source=source, picker=picker)
        assert picker.offered == ["Node", "Rust"]
        assert doc.added == ["Node"]

    def test_picker_cancel(self, tmp_path, fresh_store, source):
        request = Request(output=tmp_path / ".gitignore")
        with pytest.raises(SelectionCancelled):
            generate(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        assert source.fetched == []

    def test_picker_empty_selection_is_cancel(self, tmp_path, fresh_store, source):
        request = Request(output=tmp_path / ".gitignore")
        with pytest.raises(SelectionCancelled):
            generate(request, store=fresh_store, source=source, picker=ScriptedPicker([]))

    def test_snippets_only_skip_picker_and_index(self, tmp_path, source):
        store = MemoryCacheStore()
        picker = ScriptedPicker(["Rust"])
        request = Request(snippets=["macos"], output=tmp_path / ".gitignore", mode=WriteMode.OVERWRITE)
        doc = generate(request, store=store, source=source, picker=picker)
        assert doc.text == "### macos ###\n# Desktop Service Store Mac\n.DS_Store\n"
        assert picker.offered is None
        assert source.index_calls == 0


# ── Full runs ────────────────────────────────────────────────────────────────


class TestRun:
    def test_append_deduplicates_existing(self, tmp_path, fresh_store):
        source = FakeSource({"Rust": "*.log\ntarget/\n"})
        target = tmp_path / ".gitignore"
        target.write_text("*.log\n")
        run(Request(tokens=["rust"], output=target), store=fresh_store, source=source, picker=ScriptedPicker(None))
        lines = target.read_text().splitlines()
        assert lines.count("*.log") == 1
        assert "target/" in lines

    def test_append_twice_is_idempotent(self, tmp_path, fresh_store, source):
        target = tmp_path / ".gitignore"
        request = Request(tokens=["Node"], output=target)
        run(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        once = target.read_bytes()
        doc = run(request, store=fresh_store, source=source, picker=ScriptedPicker(None))
        assert target.read_bytes() == once
        assert doc.added == []
        assert doc.skipped == ["Node"]

    def test_dry_run_matches_overwrite_and_leaves_file(self, tmp_path, fresh_store, source, capsys):
        target = tmp_path / ".gitignore"
        target.write_bytes(b"node_modules/\nkeep\n")
        run(
            Request(tokens=["node"], output=target, mode=WriteMode.DRY_RUN),
            store=fresh_store,
            source=source,
            picker=ScriptedPicker(None),
        )
        printed = capsys.readouterr().out
        assert target.read_bytes() == b"node_modules/\nkeep\n"

        other = tmp_path / "other"
        run(
            Request(tokens=["node"], output=other, mode=WriteMode.OVERWRITE),
            store=fresh_store,
            source=source,
            picker=ScriptedPicker(None),
        )
        assert printed == other.read_text()
        assert printed == "### Node ###\n" + NODE_BODY
