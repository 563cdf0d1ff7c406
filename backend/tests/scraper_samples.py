"""
Canned careers pages, board API payloads and a fake fetcher for scraper tests.
"""
import asyncio
from typing import Dict, Iterable, List, Optional

from internship_sg.services.fetcher import FetchError


ACME_CAREERS_HTML = """
<html><body>
  <ul class="job-list">
    <li class="job-item">
      <a href="/careers/software-engineering-intern">Software Engineering Intern</a>
      <span>Hybrid, 6-month internship, $1,200 - $1,500 per month</span>
    </li>
    <li class="job-item">
      <a href="/careers/marketing-intern">Marketing Intern</a>
      <span>Remote</span>
    </li>
    <li class="job-item">
      <a href="/careers/senior-engineer">Senior Engineer</a>
    </li>
  </ul>
  <a href="mailto:hr@acme.example">Contact recruiting intern team</a>
</body></html>
"""

BANK_CAREERS_HTML = """
<html><body>
  <div class="opening-list">
    <h3><a href="https://bank.example/jobs/42">Graduate Trainee, Operations</a></h3>
  </div>
</body></html>
"""

CLOUD_BOARD_JOBS = [
    {
        "id": 1,
        "title": "Data Science Intern",
        "absolute_url": "https://boards.greenhouse.io/cloudboard/jobs/1",
        "location": {"name": "Singapore"},
        "content": "&lt;p&gt;12 week internship. Remote friendly.&lt;/p&gt;",
    },
    {
        "id": 2,
        "title": "Staff Engineer",
        "absolute_url": "https://boards.greenhouse.io/cloudboard/jobs/2",
        "location": {"name": "Singapore"},
        "content": "",
    },
]


class FakeFetcher:
    """
    Stands in for HttpFetcher: serves canned pages and board API payloads.

    failures maps a URL (or board token) to the exception its fetch raises.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        boards: Optional[Dict[str, list]] = None,
        disallowed: Iterable[str] = (),
        failures: Optional[Dict[str, Exception]] = None,
        hang: Iterable[str] = ()
    ):
        self.pages = pages or {}
        self.boards = boards or {}
        self.disallowed = set(disallowed)
        self.failures = failures or {}
        self.hang = set(hang)
        self.fetched: List[str] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeFetcher":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.exited = True

    async def allowed(self, url: str) -> bool:
        return url not in self.disallowed

    async def fetch(self, url: str) -> str:
        self.fetched.append(url)
        if url in self.hang:
            await asyncio.sleep(3600)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise FetchError(f"Fetch of {url} failed: HTTP 404")
        return self.pages[url]

    async def fetch_greenhouse(self, board_token: str) -> list:
        self.fetched.append(f"greenhouse:{board_token}")
        if board_token in self.failures:
            raise self.failures[board_token]
        return self.boards.get(board_token, [])


