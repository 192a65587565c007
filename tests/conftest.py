"""Shared test fixtures: player page snapshots and a stand-in Playwright page."""

from contextlib import asynccontextmanager

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import scraper


MATCH_TABLE = """
<table id="matches">
  <thead>
    <tr>
      <th>Date</th><th>Tournament</th><th>Surface</th><th>Rd</th>
      <th>Rk</th><th>vRk</th><th>Opponent</th><th>Score</th>
      <th>DR</th><th>A%</th><th>DF%</th><th>1stIn</th><th>BPSvd</th>
    </tr>
  </thead>
  <tbody>
    <tr>
      <td>14-Jul-2019</td><td>Wimbledon</td><td>Grass</td><td>F</td>
      <td>3</td><td>1</td><td><a href="player.cgi?p=APlayer">A. Player</a> (3)</td>
      <td>6-7(5) 6-1 6-7(4) 6-4 12-13(3)</td>
      <td>1.24</td><td>13.2%</td><td>2.4%</td><td>62.5%</td><td>5/8</td>
    </tr>
    <tr>
      <td></td><td>Totals</td><td></td><td></td><td></td><td></td><td></td>
      <td></td><td>1.10</td><td>10.0%</td><td>3.0%</td><td></td><td></td>
    </tr>
    <tr><th>2018</th></tr>
    <tr>
      <td>12-Jul-2019</td><td>Wimbledon</td><td>Grass</td><td>SF</td>
      <td>3</td><td>2</td><td>Rafael Nadal [ESP]</td>
      <td>7-6(3) 1-6 6-3 6-4</td>
      <td>1.31</td><td>8.1%</td><td>1.2%</td><td>68.0%</td><td>1/1</td>
    </tr>
  </tbody>
</table>
"""

RANKINGS_TABLE = """
<table id="rankings">
  <thead><tr><th>Date</th><th>Rank</th></tr></thead>
  <tbody><tr><td>01-Jul-2019</td><td>3</td></tr></tbody>
</table>
"""


def player_page(profile: str = "Age: 37.9 (08-Aug-1981)", plays: str = "Plays: Right (one-handed backhand)",
                tables: str = RANKINGS_TABLE + MATCH_TABLE) -> str:
    return f"""
<html><body>
  <div id="profile"><p>{profile}</p><p>{plays}</p></div>
  {tables}
</body></html>
"""


class FakePage:
    """Serves canned HTML per URL with the Playwright page calls the scraper makes."""

    def __init__(self, pages: dict, timeouts=()):
        self.pages = pages
        self.timeouts = set(timeouts)
        self.visited = []
        self.goto_options = []
        self.wait_timeouts = []
        self.html = ""

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        self.goto_options.append({"wait_until": wait_until, "timeout": timeout})
        if url in self.timeouts:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")
        self.html = self.pages.get(url, "<html><body></body></html>")

    async def inner_text(self, selector):
        soup = BeautifulSoup(self.html, 'html.parser')
        return soup.select_one(selector).get_text("\n")

    async def wait_for_function(self, expression, timeout=None):
        self.wait_timeouts.append(timeout)
        if scraper.find_match_table(BeautifulSoup(self.html, 'html.parser')) is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def content(self):
        return self.html


@pytest.fixture
def match_page() -> str:
    return player_page()


@pytest.fixture
def match_table():
    return BeautifulSoup(MATCH_TABLE, 'html.parser').find('table')


@pytest.fixture
def fake_browser(monkeypatch):
    """Route scraper.open_browser_page to a FakePage; returns a factory for it."""

    def install(pages: dict, timeouts=()):
        page = FakePage(
            {scraper.build_player_url(name): html for name, html in pages.items()},
            {scraper.build_player_url(name) for name in timeouts},
        )

        @asynccontextmanager
        async def open_fake_page():
            yield page

        monkeypatch.setattr(scraper, 'open_browser_page', open_fake_page)
        return page

    return install
