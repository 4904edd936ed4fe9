"""Item Search — find active items whose serial or contract contains a term.

Invariants:
    - Terms shorter than SEARCH_MIN_LENGTH return no results
    - Only active items are returned
    - Results ordered by day, most recent first; within a day, category order
"""

from dataclasses import dataclass
from typing import Mapping

from equiptrack.core.domain_types import DayKey, EquipmentCategory, SEARCH_MIN_LENGTH
from equiptrack.core.equipment_item import EquipmentItem, is_item_active
from equiptrack.core.ledger import DailyRecord, iter_items


@dataclass(frozen=True)
class SearchHit:
    day: DayKey
    category: EquipmentCategory
    item: EquipmentItem


def search_items(ledger: Mapping[DayKey, DailyRecord], term: str) -> list[SearchHit]:
    if len(term) < SEARCH_MIN_LENGTH:
        return []
    hits = [
        SearchHit(day, category, item)
        for day, category, item in iter_items(ledger)
        if is_item_active(item) and (term in item.serial_code or term in item.contract_code)
    ]
    # stable sort keeps category order within a day
    hits.sort(key=lambda hit: hit.day, reverse=True)
    return hits
