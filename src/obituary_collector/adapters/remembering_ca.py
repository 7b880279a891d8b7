"""Remembering.ca / Postmedia newspaper obituary network.

Powers the obituary sections of the Postmedia and Metroland papers
(obituaries.yorkregion.com, obituaries.thestar.com, ...). Notices are paid
placements; only listing-level facts are used and images are never
hotlinked.
"""
from __future__ import annotations

from bs4 import Tag

from ..models.records import Card
from ..models.source import Source
from .base import BaseAdapter, node_text, parents_of


class RememberingCaAdapter(BaseAdapter):
    adapter_type = "remembering_ca"
    label = "Remembering.ca / Postmedia Newspapers"

    card_selectors = (
        'div[class*="ap_ad_wrap"]',
        parents_of('div[class*="listview-summary"]'),
        'div[class*="obituary-card"]',
        'div[class*="obit-listing"] article',
        'div[class*="listing"] div[class*="card"]',
        'ul[class*="obituaries"] li',
        'div[class*="search-results"] div[class*="result"]',
        parents_of('a[href*="/obituary/"], a[href*="/obituaries/"]'),
    )

    def extract_card(self, node: Tag, source: Source) -> Card:
        card = Card(full_text=node_text(node))
        self.read_name(node, card, source)
        self.read_detail_url(node, card, source)
        self.read_dates(node, card, ('[class*="date"]', "time", 'span[class*="dates"]'))
        if not card.date_text:
            self.read_published_date(card)
        self.read_image(node, card, source)

        location = node.select_one('[class*="location"], [class*="city"]')
        if location is not None:
            card.location = node_text(location)
        funeral_home = node.select_one('[class*="funeral"], [class*="provider"]')
        if funeral_home is not None:
            card.funeral_home = node_text(funeral_home)

        self.read_description(node, card, ("p", '[class*="excerpt"]'))
        return card
