"""Legacy.com newspaper obituary network.

Listings are date-based: ``/today`` plus ``/browse?date=YYYY-MM-DD`` for
recent days. Detail pages are never fetched and images never hotlinked;
the full notices are third-party copyrighted text.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

from bs4 import Tag

from ..models.records import Card
from ..models.source import Source
from .base import BaseAdapter, add_query_arg, node_text, parents_of, resolve_url

LEGACY_BASE = "https://www.legacy.com"
MAX_BROWSE_DAYS = 7


class LegacyComAdapter(BaseAdapter):
    adapter_type = "legacy_com"
    label = "Legacy.com (Newspaper Obituary Network)"

    card_selectors = (
        'div[class*="obit-card"]',
        'div[class*="PersonCard"]',
        'div[class*="Obituary"] div[class*="Card"]',
        parents_of('a[class*="obit-link"]'),
        'div[data-testid*="obituary"]',
        'div[class*="results"] div[class*="item"]',
    )

    def __init__(self, fetcher, settings=None, *, today: Callable[[], date] = date.today) -> None:
        super().__init__(fetcher, settings)
        self._today = today

    def discover_listing_urls(self, source: Source, max_age_days: int = 7) -> list[str]:
        base_url = source.base_url.rstrip("/")
        urls = [base_url]
        if "/today" in base_url:
            browse_base = base_url.replace("/today", "/browse")
            today = self._today()
            for days_back in range(1, min(max_age_days, MAX_BROWSE_DAYS) + 1):
                day = today - timedelta(days=days_back)
                urls.append(add_query_arg(browse_base, "date", day.isoformat()))
        return urls[: self.max_pages(source)]

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        name = self.first_with_text(
            node,
            (
                "h3 > a", "h2 > a", 'a[class*="obit-name"]', 'a[class*="name"]',
                '[class*="PersonName"]', "strong > a", "h3", "h2",
            ),
        )
        if name is not None:
            card.name = node_text(name)
            if name.name == "a":
                card.detail_url = resolve_url(name.get("href", ""), LEGACY_BASE)
        if not card.detail_url:
            link = node.select_one('a[href*="/obituar"]')
            if link is not None:
                card.detail_url = resolve_url(link.get("href", ""), LEGACY_BASE)

        self.read_dates(node, card, ('[class*="date"]', '[class*="Date"]', "time"))

        for query in ('[class*="location"]', '[class*="Location"]', '[class*="city"]'):
            found = node.select_one(query)
            if found is not None:
                card.location = node_text(found)
                break
        for query in ('[class*="funeral"]', '[class*="Funeral"]', '[class*="provider"]'):
            found = node.select_one(query)
            if found is not None:
                card.funeral_home = node_text(found)
                break

        self.read_description(
            node, card, ('[class*="excerpt"]', '[class*="snippet"]', '[class*="summary"]', "p")
        )
        return card
