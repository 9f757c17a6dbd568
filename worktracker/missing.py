"""Detection of recent days with nothing logged."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from worktracker.dates import format_short, is_weekend, parse_date
from worktracker.ledger import day_total
from worktracker.models import Entries, MissingDataPolicy, MissingDay

logger = logging.getLogger(__name__)

# Hard stop for the backward walk, in calendar days.
MAX_LOOKBACK_DAYS = 120


def find_missing_days(entries: Entries, policy: MissingDataPolicy, today: date | str) -> list[MissingDay]:
    """Days with zero logged hours in the lookback window, newest first.

    The walk starts the day before *today* (today is never reported). When
    weekends are excluded they are skipped without using up the window, so
    the window always covers ``policy.days`` eligible days.
    """
    if not policy.enabled:
        return []

    missing = []
    scanned = 0
    current = parse_date(today) - timedelta(days=1)
    for _ in range(MAX_LOOKBACK_DAYS):
        if scanned >= policy.days:
            break
        weekend = is_weekend(current)
        if weekend and not policy.include_weekends:
            current -= timedelta(days=1)
            continue
        scanned += 1
        key = current.isoformat()
        if day_total(entries, key) == 0:
            missing.append(MissingDay(date=key, label=format_short(current), is_weekend=weekend))
        current -= timedelta(days=1)

    if missing:
        logger.debug("%d unlogged day(s) in the last %d scanned", len(missing), scanned)
    return missing
