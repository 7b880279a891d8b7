"""Adapter contract and shared helpers for obituary source families."""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, Sequence, runtime_checkable
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup, Tag

from ..config import CollectorSettings
from ..extraction.age import extract_age
from ..extraction.dates import (
    find_date_range_in_text,
    parse_date_range,
    year_range,
)
from ..extraction.death_date import extract_death_date
from ..extraction.images import is_placeholder_image_url
from ..extraction.location import extract_location_from_text, normalize_city
from ..extraction.names import provenance_hash
from ..models.records import Card, DetailEnrichment, NormalizedRecord
from ..models.source import Source

if TYPE_CHECKING:
    from ..net import FetchResult, HttpFetcher

logger = logging.getLogger(__name__)

# A card container selector: a CSS string, or a callable for shapes CSS can't
# express (e.g. "the parent of every .listview-summary").
Selector = str | Callable[[BeautifulSoup], list[Tag]]

NAME_QUERIES = ("h2 > a", "h3 > a", "h4 > a", "h2", "h3", "h4", '[class*="name"]', "strong > a", "strong")
DATE_QUERIES = ('[class*="date"]', "time")
MIN_DESCRIPTION_CHARS = 15


@dataclass
class ConnectionTest:
    success: bool
    message: str


@runtime_checkable
class SourceAdapter(Protocol):
    """What the collector needs from a source family."""

    adapter_type: str
    label: str
    fetches_detail: bool

    def discover_listing_urls(self, source: Source, max_age_days: int = 7) -> list[str]: ...

    async def fetch_listing(self, url: str, source: Source) -> FetchResult: ...

    def extract_cards(self, html: str, source: Source) -> list[Card]: ...

    async def fetch_detail(self, detail_url: str, card: Card, source: Source) -> DetailEnrichment | None: ...

    def normalize(self, card: Card, source: Source) -> NormalizedRecord: ...

    async def test_connection(self, source: Source) -> ConnectionTest: ...


def parents_of(css: str) -> Callable[[BeautifulSoup], list[Tag]]:
    """Selector yielding the distinct parents of every node matching ``css``."""

    def _select(soup: BeautifulSoup) -> list[Tag]:
        seen: set[int] = set()
        parents: list[Tag] = []
        for node in soup.select(css):
            parent = node.parent
            if isinstance(parent, Tag) and id(parent) not in seen:
                seen.add(id(parent))
                parents.append(parent)
        return parents

    return _select


def node_text(node: Tag | None) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def node_attr(node: Tag | None, attr: str) -> str:
    if node is None:
        return ""
    value = node.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def resolve_url(href: str, base: str) -> str:
    if not href:
        return ""
    return urljoin(base, href.strip())


def add_query_arg(url: str, key: str, value: object) -> str:
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, str(value)))
    return urlunparse(parts._replace(query=urlencode(query)))


def truncate(text: str, limit: int) -> str:
    """Cap ``text`` at ``limit`` characters, ending in "..." when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


class BaseAdapter(ABC):
    """Shared behaviour for adapters.

    Subclasses declare ``card_selectors`` (tried in order, first selector
    with at least one match wins) and implement :meth:`extract_card`.
    :meth:`normalize` is shared: it runs the fact extractors in a fixed order
    so every family applies the same fail-closed rules.
    """

    adapter_type: str = "base"
    label: str = ""
    fetches_detail: bool = False
    hotlinks_images: bool = False
    card_selectors: Sequence[Selector] = ()
    default_max_pages: int = 5

    def __init__(self, fetcher: HttpFetcher, settings: CollectorSettings | None = None) -> None:
        self.fetcher = fetcher
        self.settings = settings or CollectorSettings()

    # Discovery -----------------------------------------------------------

    def max_pages(self, source: Source) -> int:
        return max(1, source.max_pages_per_run or self.default_max_pages)

    def discover_listing_urls(self, source: Source, max_age_days: int = 7) -> list[str]:
        """Base URL then ``?page=N`` for the remaining page budget."""
        urls = [source.base_url]
        for page in range(2, self.max_pages(source) + 1):
            urls.append(self.page_url(source.base_url, page))
        return urls

    def page_url(self, base_url: str, page: int) -> str:
        return add_query_arg(base_url, "page", page)

    @staticmethod
    def path_page_url(base_url: str, page: int) -> str:
        return f"{base_url.rstrip('/')}/page/{page}"

    # Fetching ------------------------------------------------------------

    async def fetch_listing(self, url: str, source: Source) -> FetchResult:
        return await self.fetcher.get(url)

    async def fetch_detail(self, detail_url: str, card: Card, source: Source) -> DetailEnrichment | None:
        return None

    async def test_connection(self, source: Source) -> ConnectionTest:
        result = await self.fetcher.get(source.base_url)
        if not result.ok:
            return ConnectionTest(False, f"Connection failed: {result.error}")
        cards = self.extract_cards(result.content, source)
        return ConnectionTest(
            True,
            f"Connection successful. Received {len(result.content)} bytes, {len(cards)} cards.",
        )

    # Parsing -------------------------------------------------------------

    @staticmethod
    def parse_html(html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "html.parser")

    @staticmethod
    def select_first_matching(soup: BeautifulSoup, selectors: Sequence[Selector]) -> list[Tag]:
        for selector in selectors:
            nodes = selector(soup) if callable(selector) else soup.select(selector)
            if nodes:
                logger.debug("card selector matched %d nodes: %s", len(nodes), selector)
                return list(nodes)
        return []

    @staticmethod
    def first_with_text(node: Tag, queries: Sequence[str]) -> Tag | None:
        for query in queries:
            found = node.select_one(query)
            if found is not None and found.get_text(strip=True):
                return found
        return None

    def extract_cards(self, html: str, source: Source) -> list[Card]:
        soup = self.parse_html(html)
        cards = []
        for node in self.select_first_matching(soup, self.card_selectors):
            card = self.extract_card(node, source)
            if card.name:
                cards.append(card)
        return cards

    @abstractmethod
    def extract_card(self, node: Tag, source: Source) -> Card:
        """Build one card from a matched container node."""

    # Shared card-field helpers ------------------------------------------

    def read_name(self, node: Tag, card: Card, source: Source, queries: Sequence[str] = NAME_QUERIES) -> None:
        found = self.first_with_text(node, queries)
        if found is None:
            return
        card.name = node_text(found)
        link = found if found.name == "a" else found.find("a")
        if isinstance(link, Tag) and link.get("href"):
            card.detail_url = resolve_url(node_attr(link, "href"), source.base_url)

    def read_detail_url(self, node: Tag, card: Card, source: Source, query: str = "a[href]") -> None:
        if card.detail_url:
            return
        link = node.select_one(query)
        if link is not None:
            card.detail_url = resolve_url(node_attr(link, "href"), source.base_url)

    def read_dates(self, node: Tag, card: Card, queries: Sequence[str] = DATE_QUERIES) -> None:
        """Structured date text, with years-only text split into year fields."""
        for query in queries:
            for found in node.select(query):
                text = node_text(found)
                # Publication stamps are diagnostics, not life dates
                if "publish" in node_attr(found, "class").lower() or text.lower().startswith("published"):
                    continue
                card.date_text = node_attr(found, "datetime") or text
                break
            if card.date_text:
                break
        if not card.date_text:
            card.date_text = find_date_range_in_text(card.full_text)

        years = year_range(card.date_text)
        if years:
            birth_year, death_year = years
            card.year_birth = str(birth_year or "")
            card.year_death = str(death_year or "")
            card.date_text = find_date_range_in_text(card.full_text)

    def read_image(self, node: Tag, card: Card, source: Source) -> None:
        img = node.select_one("img")
        if img is None:
            return
        src = node_attr(img, "data-src") or node_attr(img, "src")
        if src and not is_placeholder_image_url(src):
            card.image_url = resolve_url(src, source.base_url)

    def read_description(self, node: Tag, card: Card, queries: Sequence[str]) -> None:
        for query in queries:
            found = node.select_one(query)
            if found is not None and len(found.get_text(strip=True)) > MIN_DESCRIPTION_CHARS:
                card.description = node_text(found)
                return

    def read_published_date(self, card: Card) -> None:
        m = re.search(r"Published\s+online\s+.*?((?:[A-Z][a-z]+)\.?\s+\d{1,2},?\s+\d{4})", card.full_text, re.IGNORECASE)
        if m:
            card.published_date = m.group(1)

    # Normalization -------------------------------------------------------

    def clean_name(self, name: str) -> str:
        return " ".join((name or "").split())

    def default_funeral_home(self, source: Source) -> str:
        return ""

    def normalize(self, card: Card, source: Source) -> NormalizedRecord:
        """Turn a card into a candidate record.

        Death date comes from structured date text first, then from the
        keyword-gated rules over the card and detail text. A published date
        or a bare year never fills it.
        """
        text = " ".join(part for part in (card.full_text, card.description) if part)

        birth_year = int(card.year_birth) if card.year_birth.isdigit() else None
        death_year = int(card.year_death) if card.year_death.isdigit() else None

        birth = death = None
        years = year_range(card.date_text)
        if years:
            birth_year, death_year = years[0] or birth_year, years[1] or death_year
        else:
            dates = parse_date_range(card.date_text)
            birth, death = dates.birth, dates.death
        if death is None:
            match = extract_death_date(text)
            if match is not None:
                death = match.date
        if 0 < card.age <= 120:
            age, approximate = card.age, False
        else:
            result = extract_age(text, birth, death, birth_year=birth_year, death_year=death_year)
            age, approximate = result.age, result.approximate

        location = card.location if normalize_city(card.location) else ""
        if not location:
            location = extract_location_from_text(text)
        if not location:
            location = source.city
        city = normalize_city(location)

        funeral_home = " ".join(card.funeral_home.split()) or self.default_funeral_home(source)

        image_url = ""
        if self.hotlinks_images and card.image_url and not is_placeholder_image_url(card.image_url):
            image_url = card.image_url

        name = self.clean_name(card.name)
        death_iso = death.isoformat() if death else ""
        return NormalizedRecord(
            name=name,
            date_of_birth=birth,
            date_of_death=death,
            age=age,
            age_approximate=approximate,
            funeral_home=funeral_home,
            location=" ".join(location.split()),
            city_normalized=city,
            image_url=image_url,
            description=truncate(" ".join(card.description.split()), self.settings.description_max_length),
            source_url=card.detail_url,
            source_domain=source.host,
            source_type=self.adapter_type,
            provenance_hash=provenance_hash(name, death_iso, funeral_home, city),
        )
