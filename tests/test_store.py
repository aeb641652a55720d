"""Tests for the runtime matcher, overrides and URL handling."""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from domaincat.categories import NETWORKING, Category
from domaincat.errors import MalformedArtifact, RegistrationConflict
from domaincat.overrides import OverrideRegistry
from domaincat.store import CategoryStore
from domaincat.succinct import build_map_bytes, write_artifact
from domaincat.urls import get_host_from_url

ADS = Category.ADS.bit
TRACKING = Category.TRACKING.bit


class TestSeedQueries:
    """Lookups against the seed dictionary."""

    def test_is_bad_website_url_within_set(self, store: CategoryStore) -> None:
        assert store.is_bad_website_url("wingwahlau.com")

    def test_is_bad_website_url_not_in_set(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url("goodwebsite.com")

    def test_is_bad_website_url_empty_string(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url("")

    def test_is_bad_website_url_case_insensitive(self, store: CategoryStore) -> None:
        assert store.is_bad_website_url("10MinutesTo1.NET")

    def test_is_ad_website_url(self, store: CategoryStore) -> None:
        assert store.is_ad_website_url("admob.google.com")
        assert not store.is_ad_website_url("google.com")

    def test_is_tracking_website_url(self, store: CategoryStore) -> None:
        assert store.is_tracking_website_url("2.atlasroofing.com")

    def test_is_gambling_website_url(self, store: CategoryStore) -> None:
        assert store.is_gambling_website_url("casino-royale.bet")

    def test_pruned_subdomain_still_matches(self, store: CategoryStore) -> None:
        assert store.is_bad_website_url("www.wingwahlau.com")

    def test_subdomain_inherits_category(self, store: CategoryStore) -> None:
        assert store.is_bad_website_url("cdn3.assets.wingwahlau.com")
        assert store.is_ad_website_url("pixel.doubleclick.net")
        assert store.is_gambling_website_url("www.slots.example.net")

    def test_parent_does_not_inherit_from_child(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url("example.org")
        assert not store.is_tracking_website_url("doubleclick.net")

    def test_deep_miss(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url("a.b.c.d.goodwebsite.com")

    def test_host_without_dot(self, store: CategoryStore) -> None:
        assert not store.is_url_bad("localhost")
        assert store.category_mask_for("com") == 0

    def test_is_url_bad_any_category(self, store: CategoryStore) -> None:
        assert store.is_url_bad("wingwahlau.com")
        assert store.is_url_bad("ads.admob.google.com")
        assert store.is_url_bad("casino-royale.bet")
        assert not store.is_url_bad("goodwebsite.com")

    def test_unencodable_host_is_a_miss(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url("\udcff.goodwebsite.com")
        assert not store.is_url_bad_clean("https://\udcff/")
        # Ancestors of an unencodable host still match
        assert store.is_bad_website_url("\udcff.wingwahlau.com")

    def test_nul_in_host_is_a_miss(self, store: CategoryStore) -> None:
        assert not store.is_url_bad("wingwahlau.com\x00")
        assert not store.is_bad_website_url_clean("https://wingwahlau.com\x00/x")
        assert store.is_url_bad("a\x00.wingwahlau.com")

    def test_queries_are_idempotent(self, store: CategoryStore) -> None:
        first = [store.category_mask_for("stats.doubleclick.net"), store.is_url_bad("goodwebsite.com")]
        second = [store.category_mask_for("stats.doubleclick.net"), store.is_url_bad("goodwebsite.com")]
        assert first == second


class TestWalkUp:
    def test_masks_from_all_levels_are_combined(self) -> None:
        store = CategoryStore.from_mapping({"example.com": ADS, "cdn.example.com": TRACKING})
        assert store.category_mask_for("a.cdn.example.com") == ADS | TRACKING
        assert store.category_mask_for("cdn.example.com") == ADS | TRACKING
        assert store.category_mask_for("other.example.com") == ADS

    def test_bare_tld_entry_not_inherited(self) -> None:
        store = CategoryStore.from_mapping({"com": ADS}, prune=False)
        assert store.category_mask_for("com") == ADS
        assert store.category_mask_for("example.com") == 0

    def test_suffix_monotonic(self, store: CategoryStore) -> None:
        child = store.category_mask_for("x.stats.doubleclick.net")
        parent = store.category_mask_for("stats.doubleclick.net")
        assert child & parent == parent

    def test_categories_for(self, store: CategoryStore) -> None:
        assert store.categories_for("stats.doubleclick.net") == [Category.ADS, Category.TRACKING]
        assert store.categories_for("goodwebsite.com") == []


class TestOverrides:
    def test_registered_domain_matches(self, store: CategoryStore) -> None:
        store.register("ads", ["adwebsite.com", "ad1website.com"])
        assert store.is_ad_website_url("adwebsite.com")
        assert store.is_ad_website_url("ad1website.com")
        assert not store.is_bad_website_url("adwebsite.com")

    def test_unknown_tag_registers_as_bad(self, store: CategoryStore) -> None:
        store.register("unknown", ["anotherbadwebsite.com"])
        assert store.is_bad_website_url("anotherbadwebsite.com")

    def test_override_is_exact_match_only(self, store: CategoryStore) -> None:
        store.register(Category.GAMBLING, ["gamblingwebsite.com"])
        assert store.is_gambling_website_url("gamblingwebsite.com")
        assert not store.is_gambling_website_url("www.gamblingwebsite.com")

    def test_second_registration_fails(self, store: CategoryStore) -> None:
        store.register("tracking", ["first.example.com"])
        with pytest.raises(RegistrationConflict):
            store.register("tracking", ["second.example.com"])
        assert store.is_tracking_website_url("first.example.com")
        assert not store.is_tracking_website_url("second.example.com")

    def test_tags_are_independent(self, store: CategoryStore) -> None:
        store.register("ads", ["a.example.com"])
        store.register("tracking", ["t.example.com"])
        assert not store.is_tracking_website_url("a.example.com")
        assert not store.is_ad_website_url("t.example.com")

    def test_networking_override(self, store: CategoryStore) -> None:
        assert not store.is_networking_url("api.example.net")
        store.register(NETWORKING, ["api.example.net"])
        assert store.is_networking_url("api.example.net")
        assert store.is_url_bad("api.example.net")
        assert store.categories_for("api.example.net") == [NETWORKING]

    def test_registration_lowercases(self, store: CategoryStore) -> None:
        store.register("ads", ["MixedCase.Example.COM"])
        assert store.is_ad_website_url("mixedcase.example.com")
        assert store.is_ad_website_url("MIXEDCASE.example.com")

    def test_concurrent_registration_single_winner(self) -> None:
        registry = OverrideRegistry()
        barrier = threading.Barrier(8)
        outcomes: list[str] = []
        lock = threading.Lock()

        def register(i: int) -> None:
            barrier.wait()
            try:
                registry.register("ads", [f"site{i}.example.com"])
                result = "ok"
            except RegistrationConflict:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 7
        assert len(registry.get("ads") or ()) == 1


class TestCleanVariants:
    def test_bad_clean(self, store: CategoryStore) -> None:
        assert store.is_bad_website_url_clean("https://wingwahlau.com/login?x=1")
        assert not store.is_bad_website_url_clean("https://goodwebsite.com/")

    def test_ad_clean(self, store: CategoryStore) -> None:
        assert store.is_ad_website_url_clean("http://admob.google.com/ads")

    def test_tracking_clean(self, store: CategoryStore) -> None:
        assert store.is_tracking_website_url_clean("https://2.atlasroofing.com")

    def test_gambling_clean(self, store: CategoryStore) -> None:
        assert store.is_gambling_website_url_clean("casino-royale.bet/play")

    def test_networking_clean(self, store: CategoryStore) -> None:
        store.register("networking", ["api.example.net"])
        assert store.is_networking_url_clean("https://api.example.net/v1")

    def test_url_bad_clean(self, store: CategoryStore) -> None:
        assert store.is_url_bad_clean("https://pixel.doubleclick.net/p.gif")

    def test_no_host(self, store: CategoryStore) -> None:
        assert not store.is_url_bad_clean("")
        assert not store.is_url_bad_clean("https://")
        assert not store.is_bad_website_url_clean("/just/a/path")

    def test_port_is_not_stripped(self, store: CategoryStore) -> None:
        assert not store.is_bad_website_url_clean("https://wingwahlau.com:8443/")


class TestGetHostFromUrl:
    def test_https_with_path(self) -> None:
        assert get_host_from_url("https://example.com/path/to/page") == "example.com"

    def test_http(self) -> None:
        assert get_host_from_url("http://example.com") == "example.com"

    def test_plain_host(self) -> None:
        assert get_host_from_url("plainhost.com") == "plainhost.com"

    def test_unrecognized_scheme(self) -> None:
        assert get_host_from_url("ftp://x.com") == "ftp:"

    def test_only_one_scheme_stripped(self) -> None:
        assert get_host_from_url("https://http://example.com") == "http:"

    def test_scheme_case_sensitive(self) -> None:
        assert get_host_from_url("HTTPS://example.com") == "HTTPS:"

    def test_keeps_port_and_trailing_dot(self) -> None:
        assert get_host_from_url("https://example.com.:8080/x") == "example.com.:8080"

    def test_empty(self) -> None:
        assert get_host_from_url("") is None


class TestLoading:
    def test_lazy_load(self, tmp_path: Path) -> None:
        path = tmp_path / "domains.dcat"
        write_artifact(path, build_map_bytes({"wingwahlau.com": 1}))

        store = CategoryStore.from_path(path)
        assert not store.loaded
        assert store.is_bad_website_url("wingwahlau.com")
        assert store.loaded

    def test_loader_called_once_under_contention(self) -> None:
        data = build_map_bytes({"wingwahlau.com": 1})
        calls = []

        def loader() -> bytes:
            calls.append(1)
            return data

        store = CategoryStore(loader)
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(store.is_bad_website_url, ["wingwahlau.com"] * 200))

        assert all(results)
        assert len(calls) == 1

    def test_missing_artifact(self, tmp_path: Path) -> None:
        store = CategoryStore.from_path(tmp_path / "missing.dcat")
        with pytest.raises(MalformedArtifact):
            store.is_bad_website_url("wingwahlau.com")

    def test_corrupt_artifact_never_falls_back(self) -> None:
        store = CategoryStore.from_bytes(b"not an artifact at all, just some bytes........")
        for _ in range(2):
            with pytest.raises(MalformedArtifact):
                store.is_url_bad("wingwahlau.com")
        assert not store.loaded

    def test_shared_registry(self) -> None:
        registry = OverrideRegistry()
        registry.register("ads", ["shared.example.com"])
        store = CategoryStore.from_mapping({}, overrides=registry)
        assert store.is_ad_website_url("shared.example.com")
