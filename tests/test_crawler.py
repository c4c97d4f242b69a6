"""Tests for the breadth-first crawl scheduler."""

import pytest

from flowcap.crawler import CrawlScheduler
from flowcap.exceptions import CaptureFailure, InvalidSeedURL
from flowcap.flow_tree import build_flow_tree
from flowcap.models import count_flows

from conftest import FakeSite


def make_scheduler(driver, recorder, **kwargs):
    return CrawlScheduler(driver, recorder, **kwargs)


class TestCrawlScheduler:
    """Test cases for CrawlScheduler."""

    def test_scheduler_initialization(self, recorder):
        """Test defaults and per-instance state."""
        scheduler = make_scheduler(FakeSite(), recorder)
        assert scheduler.max_depth == 2
        assert scheduler.max_pages == 50
        assert scheduler.captured_count == 0
        assert len(scheduler.queue) == 0
        assert scheduler.visited_urls == set()

    def test_instances_do_not_share_state(self, recorder):
        a = make_scheduler(FakeSite(), recorder)
        b = make_scheduler(FakeSite(), recorder)
        a.visited_urls.add("https://example.com/")
        assert b.visited_urls == set()

    @pytest.mark.asyncio
    async def test_seed_only_at_depth_zero(self, site, recorder):
        """Scenario A: max_depth=0 captures just the seed, named Home."""
        scheduler = make_scheduler(site, recorder, max_depth=0)

        result = await scheduler.crawl("https://example.com/")

        assert result.captured_count == 1
        assert list(result.edge_map) == ["https://example.com/"]
        assert result.edge_map["https://example.com/"].step.name == "Home"
        assert site.visits == ["https://example.com/"]

    @pytest.mark.asyncio
    async def test_breadth_first_order(self, site, recorder):
        """Test all pages at one depth are visited before the next depth."""
        scheduler = make_scheduler(site, recorder)

        result = await scheduler.crawl("https://example.com")

        assert site.visits == [
            "https://example.com/",
            "https://example.com/about",
            "https://example.com/blog",
            "https://example.com/about/team",
            "https://example.com/blog/first-post",
        ]
        assert result.captured_count == 5
        assert [s.order for s in recorder.steps] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_edge_map_records_discovery(self, site, recorder):
        """Test parents, depths and children follow first discovery."""
        result = await make_scheduler(site, recorder).crawl("https://example.com/")
        edges = result.edge_map

        assert edges["https://example.com/"].parent_url is None
        assert edges["https://example.com/"].children == [
            "https://example.com/about",
            "https://example.com/blog",
        ]
        assert edges["https://example.com/about/team"].parent_url == "https://example.com/about"
        assert edges["https://example.com/about/team"].depth == 2
        # /blog links back to /about, which was already discovered from home
        assert edges["https://example.com/blog"].children == ["https://example.com/blog/first-post"]

    @pytest.mark.asyncio
    async def test_every_child_listed_once_under_its_parent(self, site, recorder):
        result = await make_scheduler(site, recorder).crawl("https://example.com/")

        for url, node in result.edge_map.items():
            if node.parent_url is not None:
                assert result.edge_map[node.parent_url].children.count(url) == 1

    @pytest.mark.asyncio
    async def test_fragment_variants_visited_once(self, recorder):
        """Scenario B: /about and /about#team are the same page."""
        driver = FakeSite({
            "https://example.com/": ["/about", "/about#team", "/about/"],
        })

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")

        assert driver.visits.count("https://example.com/about") == 1
        assert result.captured_count == 2

    @pytest.mark.asyncio
    async def test_shared_link_visited_once(self, recorder):
        """Test a page linked from several pages is captured once."""
        driver = FakeSite({
            "https://example.com/": ["/a", "/b"],
            "https://example.com/a": ["/shared"],
            "https://example.com/b": ["/shared"],
        })

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")

        assert driver.visits.count("https://example.com/shared") == 1
        assert result.edge_map["https://example.com/shared"].parent_url == "https://example.com/a"
        assert len(driver.visits) == len(set(driver.visits))

    @pytest.mark.asyncio
    async def test_exclude_patterns(self, recorder):
        """Scenario C: excluded links are never enqueued."""
        driver = FakeSite({
            "https://example.com/": ["/admin/login", "/docs"],
        })
        scheduler = make_scheduler(driver, recorder, exclude_patterns=["/admin"])

        await scheduler.crawl("https://example.com/")

        assert "https://example.com/admin/login" not in scheduler.visited_urls
        assert "https://example.com/admin/login" not in driver.visits
        assert "https://example.com/docs" in driver.visits

    @pytest.mark.asyncio
    async def test_only_admissible_links_followed(self, site, recorder):
        await make_scheduler(site, recorder).crawl("https://example.com/")

        assert all(url.startswith("https://example.com/") for url in site.visits)

    @pytest.mark.asyncio
    async def test_max_pages_budget(self, recorder):
        """Scenario E: max_pages=2 with five links captures exactly two pages."""
        driver = FakeSite({
            "https://example.com/": ["/1", "/2", "/3", "/4", "/5"],
        })
        scheduler = make_scheduler(driver, recorder, max_pages=2)

        result = await scheduler.crawl("https://example.com/")

        assert result.captured_count == 2
        assert driver.visits == ["https://example.com/", "https://example.com/1"]
        assert len(scheduler.visited_urls) <= 2

    @pytest.mark.asyncio
    async def test_max_depth_bound(self, recorder):
        """Test no page deeper than max_depth is visited."""
        driver = FakeSite({
            "https://example.com/": ["/d1"],
            "https://example.com/d1": ["/d2"],
            "https://example.com/d2": ["/d3"],
            "https://example.com/d3": ["/d4"],
        })

        result = await make_scheduler(driver, recorder, max_depth=2).crawl("https://example.com/")

        assert "https://example.com/d3" not in driver.visits
        assert max(node.depth for node in result.edge_map.values()) == 2

    @pytest.mark.asyncio
    async def test_page_load_failure_skipped(self, recorder):
        """Test a failing page is skipped and the crawl continues."""
        driver = FakeSite(
            {
                "https://example.com/": ["/broken", "/ok"],
                "https://example.com/broken": ["/hidden"],
            },
            failing=["https://example.com/broken"],
        )

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")

        assert result.captured_count == 2
        assert "https://example.com/broken" not in result.edge_map
        assert "https://example.com/broken" in result.failures
        assert "https://example.com/hidden" not in driver.visits
        assert result.edge_map["https://example.com/"].children == ["https://example.com/ok"]
        assert not result.seed_failed

    @pytest.mark.asyncio
    async def test_failed_page_does_not_use_budget(self, recorder):
        driver = FakeSite(
            {"https://example.com/": ["/broken", "/a", "/b"]},
            failing=["https://example.com/broken"],
        )

        result = await make_scheduler(driver, recorder, max_pages=3).crawl("https://example.com/")

        # Budget reservation queued /broken and /a; /b was never queued
        assert result.captured_count == 2
        assert "https://example.com/b" not in driver.visits

    @pytest.mark.asyncio
    async def test_seed_failure_reported(self, recorder):
        driver = FakeSite(failing=["https://example.com/"])

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")

        assert result.captured_count == 0
        assert result.seed_failed
        assert result.edge_map == {}

    @pytest.mark.asyncio
    async def test_link_discovery_failure_counts_as_no_links(self, recorder):
        """Test a page whose links cannot be read is still captured."""
        driver = FakeSite(
            {"https://example.com/": ["/a"]},
            broken_links=["https://example.com/"],
        )

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")

        assert result.captured_count == 1
        assert driver.visits == ["https://example.com/"]

    @pytest.mark.asyncio
    async def test_capture_failure_propagates(self, site, recorder):
        site.fail_screenshots = True

        with pytest.raises(CaptureFailure):
            await make_scheduler(site, recorder).crawl("https://example.com/")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", ["not a url", "", "http://"])
    async def test_invalid_seed(self, seed, recorder):
        driver = FakeSite()

        with pytest.raises(InvalidSeedURL):
            await make_scheduler(driver, recorder).crawl(seed)

        assert driver.visits == []

    @pytest.mark.asyncio
    async def test_progress_callback(self, site, recorder):
        calls = []
        scheduler = make_scheduler(
            site, recorder, max_pages=3,
            on_progress=lambda n, total, url: calls.append((n, total, url)),
        )

        await scheduler.crawl("https://example.com/")

        assert calls[0] == (1, 3, "https://example.com/")
        assert [c[0] for c in calls] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_tree_matches_captured_pages(self, site, recorder):
        """Test the flow tree has one node per captured page."""
        result = await make_scheduler(site, recorder).crawl("https://example.com/")

        flows = build_flow_tree(result.edge_map)

        assert count_flows(flows) == result.captured_count

    @pytest.mark.asyncio
    async def test_query_variants_get_distinct_flow_ids(self, recorder):
        driver = FakeSite({
            "https://example.com/": ["/search?q=a", "/search?q=b"],
        })

        result = await make_scheduler(driver, recorder).crawl("https://example.com/")
        ids = [c.id for c in build_flow_tree(result.edge_map)[0].children]

        assert ids == ["search", "search-2"]
