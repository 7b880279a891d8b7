"""Dignity Memorial (SCI) funeral-home network."""
from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from ..models.records import Card
from ..models.source import Source
from .base import BaseAdapter, node_text, resolve_url

DIGNITY_BASE = "https://www.dignitymemorial.com"


def _obituary_link_parents(soup: BeautifulSoup) -> list[Tag]:
    seen: set[int] = set()
    parents: list[Tag] = []
    for link in soup.select('a[href*="/obituaries/"]'):
        if "/search" in link.get("href", ""):
            continue
        parent = link.parent
        if isinstance(parent, Tag) and id(parent) not in seen:
            seen.add(id(parent))
            parents.append(parent)
    return parents


class DignityMemorialAdapter(BaseAdapter):
    """Listing-only adapter: no detail fetch, no hotlinked images."""

    adapter_type = "dignity_memorial"
    label = "Dignity Memorial / SCI Network"

    card_selectors = (
        'div[class*="obit-card"]',
        'div[class*="obituary-card"]',
        'article[class*="obit"]',
        'div[class*="search-results"] div[class*="result"]',
        'ul[class*="obituaries"] li',
        _obituary_link_parents,
    )

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        name = self.first_with_text(
            node, ("h2 > a", "h3 > a", "h4 > a", "h2", "h3", "h4", '[class*="name"]', 'a[class*="obit"]')
        )
        if name is not None:
            card.name = node_text(name)
            if name.name == "a":
                card.detail_url = resolve_url(name.get("href", ""), DIGNITY_BASE)
        if not card.detail_url:
            link = node.select_one('a[href*="/obituaries/"]')
            if link is not None:
                card.detail_url = resolve_url(link.get("href", ""), DIGNITY_BASE)

        self.read_dates(node, card, ('[class*="date"]', '[class*="life-span"]', "time"))

        location = node.select_one('[class*="location"]:not([class*="location-name"]), [class*="city"]')
        if location is not None:
            card.location = node_text(location)
        funeral_home = node.select_one('[class*="funeral"], [class*="provider"], [class*="location-name"]')
        if funeral_home is not None:
            card.funeral_home = node_text(funeral_home)

        self.read_description(node, card, ("p", '[class*="excerpt"]', '[class*="summary"]'))
        return card
