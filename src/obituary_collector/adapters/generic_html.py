"""Fallback adapter driven entirely by CSS selectors in the source config.

Config keys (all optional): ``listing_selector``, ``name_selector``,
``date_selector``, ``link_selector``, ``image_selector``,
``description_selector``, ``funeral_home_name``, ``pagination_param``.
"""
from __future__ import annotations

import re

from bs4 import Tag

from ..models.records import Card
from ..models.source import Source
from .base import BaseAdapter, add_query_arg, node_attr, node_text, resolve_url

DEFAULT_SELECTORS = {
    "listing_selector": 'div[class*="obituary"], article[class*="obit"]',
    "name_selector": 'h2, h3, h4, [class*="name"]',
    "date_selector": '[class*="date"], time',
    "link_selector": 'a[href*="obituar"], a[href*="memorial"], a[href*="tribute"]',
    "image_selector": "img",
    "description_selector": 'p, [class*="excerpt"], [class*="summary"]',
}

_OBIT_SUFFIX_RE = re.compile(r"\s+(?:Obituary|Obit\.?)$", re.IGNORECASE)


class GenericHtmlAdapter(BaseAdapter):
    adapter_type = "generic_html"
    label = "Generic HTML (configurable selectors)"
    hotlinks_images = True
    default_max_pages = 3

    @staticmethod
    def selector(source: Source, key: str) -> str:
        return source.config.get(key) or DEFAULT_SELECTORS[key]

    def discover_listing_urls(self, source: Source, max_age_days: int = 7) -> list[str]:
        urls = [source.base_url]
        param = source.config.get("pagination_param")
        if param:
            for page in range(2, self.max_pages(source) + 1):
                urls.append(add_query_arg(source.base_url, param, page))
        return urls

    def extract_cards(self, html: str, source: Source) -> list[Card]:
        soup = self.parse_html(html)
        cards = []
        for node in soup.select(self.selector(source, "listing_selector")):
            card = self.extract_card(node, source)
            if card.name:
                cards.append(card)
        return cards

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        card.name = node_text(node.select_one(self.selector(source, "name_selector")))

        date_node = node.select_one(self.selector(source, "date_selector"))
        card.date_text = node_attr(date_node, "datetime") or node_text(date_node)

        link = node.select_one(self.selector(source, "link_selector"))
        card.detail_url = resolve_url(node_attr(link, "href"), source.base_url)

        img = node.select_one(self.selector(source, "image_selector"))
        card.image_url = resolve_url(node_attr(img, "data-src") or node_attr(img, "src"), source.base_url)

        card.description = node_text(node.select_one(self.selector(source, "description_selector")))
        card.funeral_home = source.config.get("funeral_home_name", "")
        return card

    def clean_name(self, name: str) -> str:
        return _OBIT_SUFFIX_RE.sub("", super().clean_name(name))

    def default_funeral_home(self, source: Source) -> str:
        return source.name
