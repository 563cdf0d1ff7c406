"""
Tests for the HTTP fetcher (careers pages and the Greenhouse board API).
"""
import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from internship_sg.config import Settings
from internship_sg.services.fetcher import (
    BrowserFetcher,
    FetchError,
    HttpFetcher,
    build_fetcher,
    fetch_careers_page,
    fetch_greenhouse_jobs,
    greenhouse_board_token,
)

USER_AGENT = "InternshipSG-Bot/1.0 (test)"


@pytest_asyncio.fixture
async def careers_server():
    """Local careers site; server.hits counts requests per path."""
    hits = {}
    robots_agents = []

    async def careers(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        return web.Response(
            text=f"<html><body>ua={request.headers.get('User-Agent')}</body></html>",
            content_type="text/html",
        )

    async def missing(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        return web.Response(status=404)

    async def flaky(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        if hits[request.path] == 1:
            return web.Response(status=503)
        return web.Response(text="<html>recovered</html>", content_type="text/html")

    async def down(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        return web.Response(status=502)

    async def board(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        if request.query.get("content") != "true":
            return web.Response(status=400)
        return web.json_response({"jobs": [{"title": "Data Intern", "absolute_url": "https://x/1"}]})

    async def robots(request: web.Request) -> web.Response:
        hits[request.path] = hits.get(request.path, 0) + 1
        robots_agents.append(request.headers.get("User-Agent"))
        return web.Response(text="User-agent: *\nDisallow: /private\n")

    app = web.Application()
    app.router.add_get("/careers", careers)
    app.router.add_get("/missing", missing)
    app.router.add_get("/flaky", flaky)
    app.router.add_get("/down", down)
    app.router.add_get("/boards/acme/jobs", board)
    app.router.add_get("/robots.txt", robots)

    server = test_utils.TestServer(app)
    await server.start_server()
    server.hits = hits
    server.robots_agents = robots_agents
    yield server
    await server.close()


# ============================================================
# GREENHOUSE BOARD DETECTION
# ============================================================

@pytest.mark.parametrize("url, token", [
    ("https://boards.greenhouse.io/stripe", "stripe"),
    ("https://job-boards.greenhouse.io/databricks/jobs/123", "databricks"),
    ("https://boards.eu.greenhouse.io/acme", "acme"),
    ("https://boards.greenhouse.io/embed/job_board?for=grab", "grab"),
    ("https://careers.grab.com", None),
    ("", None),
])
def test_greenhouse_board_token(url, token):
    assert greenhouse_board_token(url) == token


# ============================================================
# CAREERS PAGES
# ============================================================

@pytest.mark.asyncio
async def test_fetch_careers_page_sends_user_agent(careers_server):
    async with aiohttp.ClientSession() as session:
        body = await fetch_careers_page(session, str(careers_server.make_url("/careers")), USER_AGENT)
    assert f"ua={USER_AGENT}" in body


@pytest.mark.asyncio
async def test_fetch_404_fails_without_retry(careers_server):
    async with aiohttp.ClientSession() as session:
        with pytest.raises(FetchError, match="HTTP 404"):
            await fetch_careers_page(session, str(careers_server.make_url("/missing")), USER_AGENT)
    assert careers_server.hits["/missing"] == 1


@pytest.mark.asyncio
async def test_fetch_retries_transient_errors(careers_server):
    async with aiohttp.ClientSession() as session:
        body = await fetch_careers_page(
            session, str(careers_server.make_url("/flaky")), USER_AGENT, backoff_s=0
        )
    assert "recovered" in body
    assert careers_server.hits["/flaky"] == 2


@pytest.mark.asyncio
async def test_fetch_gives_up_after_attempts(careers_server):
    async with aiohttp.ClientSession() as session:
        with pytest.raises(FetchError, match="Giving up"):
            await fetch_careers_page(
                session, str(careers_server.make_url("/down")), USER_AGENT, attempts=3, backoff_s=0
            )
    assert careers_server.hits["/down"] == 3


@pytest.mark.asyncio
async def test_fetch_connection_error_raises_fetch_error():
    async with aiohttp.ClientSession() as session:
        with pytest.raises(FetchError):
            await fetch_careers_page(session, "http://127.0.0.1:9/careers", USER_AGENT, timeout_s=1, backoff_s=0)


# ============================================================
# GREENHOUSE API
# ============================================================

@pytest.mark.asyncio
async def test_fetch_greenhouse_jobs(careers_server):
    async with aiohttp.ClientSession() as session:
        jobs = await fetch_greenhouse_jobs(
            session, "acme", USER_AGENT, base_url=str(careers_server.make_url("/boards"))
        )
    assert jobs == [{"title": "Data Intern", "absolute_url": "https://x/1"}]


@pytest.mark.asyncio
async def test_fetch_greenhouse_unknown_board(careers_server):
    async with aiohttp.ClientSession() as session:
        with pytest.raises(FetchError, match="unknown"):
            await fetch_greenhouse_jobs(
                session, "unknown", USER_AGENT, base_url=str(careers_server.make_url("/boards"))
            )


# ============================================================
# FETCHER CLASS
# ============================================================

@pytest.mark.asyncio
async def test_http_fetcher_checks_robots_and_fetches(careers_server):
    async with HttpFetcher(user_agent=USER_AGENT) as fetcher:
        assert await fetcher.allowed(str(careers_server.make_url("/careers"))) is True
        assert await fetcher.allowed(str(careers_server.make_url("/private/jobs"))) is False
        body = await fetcher.fetch(str(careers_server.make_url("/careers")))
    assert "ua=" in body


@pytest.mark.asyncio
async def test_http_fetcher_caches_robots_per_host_and_identifies_itself(careers_server):
    async with HttpFetcher(user_agent=USER_AGENT) as fetcher:
        assert await fetcher.allowed(str(careers_server.make_url("/careers"))) is True
        assert await fetcher.allowed(str(careers_server.make_url("/private/jobs"))) is False
        assert await fetcher.allowed(str(careers_server.make_url("/missing"))) is True

    assert careers_server.hits["/robots.txt"] == 1
    assert careers_server.robots_agents == [USER_AGENT]


@pytest.mark.asyncio
async def test_http_fetcher_requires_context_manager():
    fetcher = HttpFetcher(user_agent=USER_AGENT)
    with pytest.raises(RuntimeError):
        await fetcher.fetch("https://x.example/careers")


def test_build_fetcher_picks_strategy():
    assert type(build_fetcher(Settings(scraper_use_browser=False))) is HttpFetcher
    browser = build_fetcher(Settings(scraper_use_browser=True, scraper_page_timeout_seconds=12))
    assert isinstance(browser, BrowserFetcher)
    assert browser.timeout_s == 12
