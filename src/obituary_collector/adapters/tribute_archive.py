"""Tribute Technology / Tribute Archive funeral-home websites."""
from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from ..extraction.images import is_placeholder_image_url
from ..models.records import Card, DetailEnrichment
from ..models.source import Source
from .base import BaseAdapter, node_attr, node_text, resolve_url, truncate


def _content_blocks_with_obituary_links(soup: BeautifulSoup) -> list[Tag]:
    # div inside .content that itself contains a tribute/obituary link
    return soup.select(
        'div[class*="content"] div:has(a[href*="tribute"]), '
        'div[class*="content"] div:has(a[href*="obituar"])'
    )


class TributeArchiveAdapter(BaseAdapter):
    """Funeral-home platform; one funeral home per site.

    Pagination is ``?page=N`` unless the source config sets
    ``pagination_style: path`` for ``/page/N``.
    """

    adapter_type = "tribute_archive"
    label = "Tribute Technology / Tribute Archive"
    fetches_detail = True
    hotlinks_images = True

    card_selectors = (
        'div[class*="tribute-listing"] div[class*="tribute"]',
        'div[class*="obituary-listing"] div[class*="obituary"]',
        'ul[class*="tributes"] li',
        'div[class*="obit-list"] article',
        'div[class*="recent-tributes"] div[class*="tribute-item"]',
        _content_blocks_with_obituary_links,
    )

    def discover_listing_urls(self, source: Source, max_age_days: int = 7) -> list[str]:
        path_style = source.config.get("pagination_style") == "path"
        urls = [source.base_url]
        for page in range(2, self.max_pages(source) + 1):
            if path_style:
                urls.append(self.path_page_url(source.base_url, page))
            else:
                urls.append(self.page_url(source.base_url, page))
        return urls

    def default_funeral_home(self, source: Source) -> str:
        return source.name

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        self.read_name(
            node, card, source,
            ("h2 > a", "h3 > a", "h4 > a", "h2", "h3", "h4",
             '[class*="tribute-name"]', '[class*="name"] a', 'a[class*="tribute"]'),
        )
        self.read_detail_url(node, card, source)
        self.read_dates(node, card, ('[class*="date"]', '[class*="tribute-dates"]', "time"))
        if not card.date_text:
            for span in node.select("span"):
                text = node_text(span)
                if "-" in text or "–" in text:
                    card.date_text = text
                    break
        self.read_image(node, card, source)
        self.read_description(
            node, card, ('[class*="excerpt"]', '[class*="summary"]', '[class*="tribute-text"]', "p")
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

        for selector in (
            'div[class*="tribute-text"]',
            'div[class*="obituary-text"]',
            'div[class*="tribute-content"]',
            'div[class*="entry-content"]',
        ):
            found = soup.select_one(selector)
            if found is not None and len(found.get_text(strip=True)) > 50:
                text = node_text(found)
                enrichment.full_text = text
                enrichment.description = truncate(text, self.settings.description_max_length)
                break

        for selector in (
            'div[class*="tribute"] img[class*="portrait"], div[class*="tribute"] img[class*="photo"]',
            'div[class*="obituary"] img',
            'img[class*="tribute-image"]',
        ):
            img = soup.select_one(selector)
            if img is None:
                continue
            src = node_attr(img, "data-src") or node_attr(img, "src")
            if src and not is_placeholder_image_url(src):
                enrichment.image_url = resolve_url(src, source.base_url)
                break

        if enrichment == DetailEnrichment():
            return None
        return enrichment
