"""CSV adapters for competitor pools and finalized period statistics."""

from __future__ import annotations

import csv
import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from pyfantasy.models import Competitor, RawStats


logger = logging.getLogger(__name__)

DEFAULT_COMPETITOR_MAPPING = {
    "competitor_id": "id",
    "name": "name",
    "position": "position",
    "price": "price",
    "club": "club",
}

DEFAULT_STATS_MAPPING = {
    "competitor_id": "id",
    "goals": "goals",
    "assists": "assists",
    "saves": "saves",
    "clean_sheet": "clean_sheet",
    "own_goals": "own_goals",
    "played": "played",
}


def _parse_price(raw_price: str) -> int:
    """Parse a price in millions (``8.5``, ``€8.5M``) into 0.1M units."""

    text = re.sub(r"[^0-9.]", "", raw_price or "")
    if not text:
        raise ValueError(f"price '{raw_price}' has no digits")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"price '{raw_price}' is not numeric") from None
    return int((value * 10).to_integral_value())


def _parse_count(raw: Optional[str]) -> int:
    text = (raw or "").strip()
    if not text:
        return 0
    return int(float(text))


def _parse_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "t", "yes", "y"}


def _get(row: Mapping[str, str], mapping: Mapping[str, str], key: str) -> Optional[str]:
    column = mapping.get(key)
    if column is None:
        return None
    value = row.get(column)
    return value.strip() if value is not None else None


def load_competitors_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[Competitor]:
    mapping = mapping or DEFAULT_COMPETITOR_MAPPING
    competitors: List[Competitor] = []
    with path.open(newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            try:
                competitors.append(
                    Competitor(
                        competitor_id=_get(row, mapping, "competitor_id") or "",
                        name=_get(row, mapping, "name") or "",
                        position=(_get(row, mapping, "position") or "").upper(),
                        price=_parse_price(_get(row, mapping, "price") or ""),
                        club=_get(row, mapping, "club") or "",
                    )
                )
            except (ValueError, ValidationError) as exc:
                logger.warning("Skipping competitor row %s in %s: %s", line_no, path.name, exc)
    return competitors


def load_period_stats_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> Dict[str, RawStats]:
    mapping = mapping or DEFAULT_STATS_MAPPING
    stats: Dict[str, RawStats] = {}
    with path.open(newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            competitor_id = _get(row, mapping, "competitor_id")
            if not competitor_id:
                logger.warning("Skipping stats row %s in %s: missing id", line_no, path.name)
                continue
            try:
                stats[competitor_id] = RawStats(
                    goals=_parse_count(_get(row, mapping, "goals")),
                    assists=_parse_count(_get(row, mapping, "assists")),
                    saves=_parse_count(_get(row, mapping, "saves")),
                    clean_sheet=_parse_flag(_get(row, mapping, "clean_sheet")),
                    own_goals=_parse_count(_get(row, mapping, "own_goals")),
                    played=_parse_flag(_get(row, mapping, "played")),
                )
            except (ValueError, ValidationError) as exc:
                logger.warning("Skipping stats row %s in %s: %s", line_no, path.name, exc)
    return stats
