"""
Tennis Abstract Match Scraper
Scrapes per-player match statistics from tennisabstract.com into a single CSV

FEATURES:
- Reads player names from a text file (one per line, blanks ignored)
- Loads each player page in headless Chromium (the match table is rendered by JS)
- Picks the match table by its "Date" + "Score" header columns
- Adds Age / Plays profile fields to every match row
- Serial scraping with a polite delay between players
- A failing player is logged and skipped, the run keeps going

Usage: python scraper.py players.txt [output.csv]
"""

import asyncio
import csv
import io
import os
import re
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from bs4 import BeautifulSoup
from playwright.async_api import async_playwright, TimeoutError as PlaywrightTimeoutError

# =============================================================================
# CONFIGURATION
# =============================================================================

BASE_URL = os.getenv('TA_BASE_URL', 'https://www.tennisabstract.com/cgi-bin/player.cgi?p=')
HEADLESS = os.getenv('HEADLESS', 'true').lower() == 'true'
SCRAPE_DELAY_MS = int(os.getenv('SCRAPE_DELAY_MS', '1200'))  # pause after every player
NAV_TIMEOUT_MS = int(os.getenv('NAV_TIMEOUT_MS', '90000'))
TABLE_TIMEOUT_MS = int(os.getenv('TABLE_TIMEOUT_MS', '60000'))

DEFAULT_OUTPUT = "output.csv"
USAGE = "Usage: python scraper.py players.txt [output.csv]"

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
VIEWPORT = {"width": 1280, "height": 800}
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

# =============================================================================
# DATA STRUCTURES
# =============================================================================

CSV_HEADERS = [
    "Player", "Age", "Plays", "Date", "Tournament", "Rk", "vRk",
    "DR", "A%", "DF%", "BPSvd", "Opponent"
]

# Columns read straight from the match table by their header label
MATCH_COLUMNS = ["Date", "Tournament", "Rk", "vRk", "DR", "A%", "DF%", "BPSvd"]

REQUIRED_HEADERS = ("Date", "Score")

AGE_RE = re.compile(r'Age[: ]+([0-9.]+)', re.IGNORECASE)
PLAYS_RE = re.compile(r'Plays[: ]+([^\n]+)', re.IGNORECASE)

# Evaluated inside the page while the match table is still loading
MATCH_TABLE_PREDICATE = """
() => Array.from(document.querySelectorAll('table')).some((t) => {
    const headers = Array.from(t.querySelectorAll('thead tr th, tr th'))
        .map((th) => th.textContent.trim());
    return headers.includes('Date') && headers.includes('Score');
})
"""


class ScrapeError(Exception):
    """A single player page could not be scraped."""


class NavigationTimeoutError(ScrapeError):
    pass


class TableNotFoundError(ScrapeError):
    pass


@dataclass
class PlayerResult:
    """Outcome of scraping one player: rows on success, the error otherwise."""

    player: str
    rows: list = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clean_text(text: str) -> str:
    if not text: return ""
    return text.strip()

def read_players(filename) -> list:
    """Player names in file order, one per non-blank line. Raises OSError if unreadable."""
    with open(filename, 'r', encoding='utf-8-sig', errors='replace') as f:
        return [name for name in (line.strip() for line in f) if name]

def build_player_url(player: str) -> str:
    # same escaping as JS encodeURIComponent
    return BASE_URL + quote(player.replace(" ", ""), safe="!*'()")

def to_csv(rows: list) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=CSV_HEADERS, restval="", extrasaction="ignore", lineterminator="\n"
    )
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()

def write_csv(filename: Path, rows: list):
    """Write all rows to CSV, replacing any existing file"""
    with open(filename, 'w', newline='', encoding='utf-8') as f:
        f.write(to_csv(rows))

# =============================================================================
# PAGE PARSING
# =============================================================================

def parse_profile(text: str) -> dict:
    """Age and Plays from the page's visible text ("" when missing)"""
    age_match = AGE_RE.search(text or "")
    plays_match = PLAYS_RE.search(text or "")
    return {
        "Age": clean_text(age_match.group(1)) if age_match else "",
        "Plays": clean_text(plays_match.group(1)) if plays_match else "",
    }

def get_headers(table) -> list:
    # Some tables put their <th> cells in a plain <tr> instead of <thead>
    cells = table.select('thead tr th') or table.select('tr th')
    return [clean_text(th.get_text()) for th in cells]

def is_match_table(table) -> bool:
    headers = get_headers(table)
    return all(label in headers for label in REQUIRED_HEADERS)

def find_match_table(soup):
    """First table (document order) having both Date and Score headers, else None"""
    for table in soup.find_all('table'):
        if is_match_table(table):
            return table
    return None

def column_index(headers: list, label: str) -> int:
    return headers.index(label) if label in headers else -1

def parse_match_rows(table) -> list:
    headers = get_headers(table)
    indexes = {label: column_index(headers, label) for label in MATCH_COLUMNS}
    v_rk_idx = indexes["vRk"]
    score_idx = column_index(headers, "Score")

    # The opponent column has no usable label, it follows vRk.
    # Breaks silently if the site ever adds a column between vRk and Score.
    opp_idx = min(v_rk_idx, score_idx) + 1 if v_rk_idx != -1 and score_idx != -1 else -1

    rows = []
    for tr in table.select('tbody tr'):
        tds = tr.find_all('td')
        if not tds:
            continue

        def cell(i):
            return clean_text(tds[i].get_text()) if 0 <= i < len(tds) else ""

        opponent = ""
        if 0 <= opp_idx < len(tds):
            # Seed/entry annotations sit outside the link, so prefer the link text
            link = tds[opp_idx].find('a')
            opponent = clean_text(link.get_text()) if link else cell(opp_idx)

        row = {label: cell(i) for label, i in indexes.items()}
        row["Opponent"] = opponent

        if row["Date"]:
            rows.append(row)
    return rows

def extract_matches(html: str) -> list:
    """Match rows from a full page snapshot; empty when no match table exists"""
    soup = BeautifulSoup(html, 'html.parser')
    table = find_match_table(soup)
    if table is None:
        return []
    return parse_match_rows(table)

# =============================================================================
# BROWSER
# =============================================================================

@asynccontextmanager
async def open_browser_page():
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=HEADLESS, args=BROWSER_ARGS)
        try:
            context = await browser.new_context(
                user_agent=USER_AGENT, viewport=VIEWPORT, device_scale_factor=1
            )
            yield await context.new_page()
        finally:
            await browser.close()

async def wait_for_match_table(page, timeout_ms: int = TABLE_TIMEOUT_MS):
    try:
        await page.wait_for_function(MATCH_TABLE_PREDICATE, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise TableNotFoundError(f"no Date/Score table after {timeout_ms} ms") from e

# =============================================================================
# MAIN SCRAPER
# =============================================================================

async def scrape_player(page, player: str,
                        nav_timeout_ms: int = NAV_TIMEOUT_MS,
                        table_timeout_ms: int = TABLE_TIMEOUT_MS) -> list:
    url = build_player_url(player)
    print(f"    {url}")

    try:
        await page.goto(url, wait_until='networkidle', timeout=nav_timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeoutError(f"{url} did not load within {nav_timeout_ms} ms") from e

    profile = parse_profile(await page.inner_text('body'))

    await wait_for_match_table(page, table_timeout_ms)
    matches = extract_matches(await page.content())

    return [{"Player": player, **row, **profile} for row in matches]

async def scrape_players(page, players: list, delay_ms: int = SCRAPE_DELAY_MS) -> list:
    """Scrape players one after another on a single page, one PlayerResult each"""
    results = []
    total = len(players)

    for i, player in enumerate(players, start=1):
        print(f"  [{i}/{total}] {player}")
        try:
            rows = await scrape_player(page, player)
            results.append(PlayerResult(player, rows))
            print(f"    ✓ {len(rows)} matches")
        except Exception as e:
            results.append(PlayerResult(player, error=e))
            print(f"    ❌ Error scraping {player}: {e}", file=sys.stderr)

        await asyncio.sleep(delay_ms / 1000)

    return results

async def run(players: list, output_path: Path, delay_ms: int = SCRAPE_DELAY_MS) -> list:
    async with open_browser_page() as page:
        results = await scrape_players(page, players, delay_ms)

    all_rows = [row for result in results if result.ok for row in result.rows]
    write_csv(output_path, all_rows)
    return results

def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE, file=sys.stderr)
        return 1

    players_file = Path(args[0])
    output_path = Path(args[1]) if len(args) > 1 else Path(DEFAULT_OUTPUT)

    try:
        players = read_players(players_file)
    except OSError as e:
        print(f"❌ Could not read {players_file}: {e}", file=sys.stderr)
        return 1

    if not players:
        print(f"❌ {players_file} contains no player names", file=sys.stderr)
        return 1

    print("\n" + "="*80)
    print("🎾 TENNIS ABSTRACT MATCH SCRAPER")
    print("="*80)
    print(f"👥 Players: {len(players)}")
    print(f"⏱️  Delay: {SCRAPE_DELAY_MS} ms")
    print(f"💾 Output: {output_path}")
    print("="*80)

    try:
        results = asyncio.run(run(players, output_path, delay_ms=SCRAPE_DELAY_MS))
    except Exception as e:
        print(f"\n❌ FATAL ERROR: {e}", file=sys.stderr)
        return 1

    row_count = sum(len(r.rows) for r in results)
    failed = [r.player for r in results if not r.ok]

    print(f"\n{'='*80}")
    print(f"✅ Done: {output_path.resolve()} ({row_count} rows)")
    if failed:
        print(f"⚠️  Failed players ({len(failed)}): {', '.join(failed)}")
    print(f"{'='*80}\n")
    return 0

if __name__ == "__main__":
    sys.exit(main())
