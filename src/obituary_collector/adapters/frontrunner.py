"""FrontRunner / Book of Memories funeral-home websites.

Each site is a single funeral home, so the registry row supplies the funeral
home name and city. Detail pages are read for a factual summary only.
"""
from __future__ import annotations

import re

from bs4 import Tag

from ..extraction.age import extract_age
from ..extraction.images import is_placeholder_image_url
from ..models.records import Card, DetailEnrichment
from ..models.source import Source
from .base import BaseAdapter, node_attr, node_text, parents_of, resolve_url, truncate

_CITY_FACT_RE = re.compile(r"\b(?:of|in|from)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*),?\s*(?:Ontario|ON)\b")
_PASSING_FACT_RE = re.compile(r"passed\s+away\s+(peacefully|suddenly|unexpectedly)", re.IGNORECASE)

DETAIL_TEXT_SELECTORS = (
    'div[class*="obituary-text"]',
    'div[class*="obit-content"]',
    'div[class*="tribute-text"]',
    'div[class*="entry-content"]',
    'article div[class*="content"]',
)
DETAIL_IMAGE_SELECTORS = (
    'div[class*="obituary"] img',
    'div[class*="tribute"] img',
    'img[class*="portrait"]',
    'img[class*="photo"]',
)


def factual_summary(full_text: str, name: str, max_length: int = 200) -> str:
    """A one-line summary built from extracted facts, never copied prose.

    >>> factual_summary("John of Aurora, Ontario passed away peacefully at the age of 80.", "John Doe")
    'John Doe, of Aurora, Ontario, passed away peacefully, aged 80.'
    """
    facts = []
    m = _CITY_FACT_RE.search(full_text)
    if m:
        facts.append(f"of {m.group(1).strip()}, Ontario")
    m = _PASSING_FACT_RE.search(full_text)
    if m:
        facts.append(f"passed away {m.group(1).lower()}")
    age = extract_age(full_text).age
    if age:
        facts.append(f"aged {age}")
    if facts:
        return f"{name}, {', '.join(facts)}."

    first_sentence = full_text.split(".", 1)[0].strip()
    return truncate(first_sentence, max_length - 1) + "."


class FrontRunnerAdapter(BaseAdapter):
    adapter_type = "frontrunner"
    label = "FrontRunner / Book of Memories"
    fetches_detail = True
    hotlinks_images = True
    default_max_pages = 3

    card_selectors = (
        'div[class*="obituary-item"]',
        'div[class*="obit-listing"]',
        'article[class*="obituary"]',
        'div[class*="tribute-item"]',
        'li[class*="obituary"]',
        parents_of('div[class*="entry"] a[href*="obituar"]'),
    )

    def page_url(self, base_url: str, page: int) -> str:
        return self.path_page_url(base_url, page)

    def default_funeral_home(self, source: Source) -> str:
        return source.name

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        self.read_name(
            node, card, source,
            ("h2 > a", "h3 > a", "h4 > a", "h2", "h3", "h4", '[class*="name"]', 'a[class*="obit"]', "strong"),
        )
        self.read_detail_url(node, card, source)
        self.read_dates(node, card, ('[class*="date"]', "time", 'span[class*="born"], span[class*="died"]'))
        self.read_image(node, card, source)
        self.read_description(
            node, card, ('[class*="excerpt"]', '[class*="summary"]', '[class*="description"]', "p")
        )
        card.funeral_home = source.name
        card.location = source.city
        return card

    async def fetch_detail(self, detail_url: str, card: Card, source: Source) -> DetailEnrichment | None:
        if not detail_url:
            return None
        result = await self.fetcher.get(detail_url)
        if not result.ok:
            return None

        soup = self.parse_html(result.content)
        enrichment = DetailEnrichment()

        for selector in DETAIL_TEXT_SELECTORS:
            found = soup.select_one(selector)
            if found is not None and len(found.get_text(strip=True)) > 50:
                full_text = node_text(found)
                enrichment.full_text = full_text
                enrichment.description = factual_summary(
                    full_text, card.name, self.settings.description_max_length
                )
                break

        for selector in DETAIL_IMAGE_SELECTORS:
            img = soup.select_one(selector)
            if img is None:
                continue
            src = node_attr(img, "src")
            if src and not is_placeholder_image_url(src):
                enrichment.image_url = resolve_url(src, source.base_url)
                break

        stamp = soup.select_one('meta[property="article:published_time"], time[datetime]')
        if stamp is not None:
            enrichment.published_date = node_attr(stamp, "content") or node_attr(stamp, "datetime")

        if enrichment == DetailEnrichment():
            return None
        return enrichment
