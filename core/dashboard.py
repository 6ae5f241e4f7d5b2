"""
core/dashboard.py
────────────────────────────────────────────────────────────────────────
Admin dashboard: headline numbers plus the per-country table.

The backend sends both sections pre-aggregated; here we validate them, sort
the country rows by income, add a totals row and cut one page out of it.
"""
from __future__ import annotations

import logging
import math
from typing import List

import pandas as pd
from pydantic import BaseModel

_LOG = logging.getLogger(__name__)

COUNTRY_COLUMNS = [
    "total_users",
    "subscribers",
    "non_subscribers",
    "active_users",
    "inactive_users",
    "active_subscriptions",
    "inactive_subscriptions",
    "income",
]


class TopSection(BaseModel):
    users_today: int = 0
    total_users: int = 0
    premium_users: int = 0
    non_premium_users: int = 0
    total_exercises: int = 0
    total_meals: int = 0
    registered_last_7_days: int = 0
    registered_last_month: int = 0
    active_subscriptions: int = 0
    inactive_subscriptions: int = 0
    total_income: float = 0


class CountryStats(BaseModel):
    country: str
    total_users: int = 0
    subscribers: int = 0
    non_subscribers: int = 0
    active_users: int = 0
    inactive_users: int = 0
    active_subscriptions: int = 0
    inactive_subscriptions: int = 0
    income: float = 0


class DashboardData(BaseModel):
    top_section: TopSection = TopSection()
    bottom_section: List[CountryStats] = []


class DashboardPage(BaseModel):
    top_section: TopSection
    countries: List[CountryStats]
    totals: CountryStats
    page: int
    total_pages: int


def _frame(rows: List[CountryStats]) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=["country", *COUNTRY_COLUMNS])
    return pd.DataFrame([r.model_dump() for r in rows])


def summarize(data: DashboardData, page: int = 1, page_size: int = 10) -> DashboardPage:
    """Sort countries by income (desc), total them, return page `page` (1-based)."""
    df = _frame(data.bottom_section)
    df = df.sort_values(["income", "country"], ascending=[False, True])

    totals = CountryStats(country="Total")
    if not df.empty:
        sums = df[COUNTRY_COLUMNS].sum()
        totals = CountryStats(
            country="Total",
            **{c: float(sums[c]) if c == "income" else int(sums[c]) for c in COUNTRY_COLUMNS},
        )

    total_pages = max(1, math.ceil(len(df) / page_size))
    page = min(max(page, 1), total_pages)
    window = df.iloc[(page - 1) * page_size: page * page_size]
    countries = [CountryStats(**row) for row in window.to_dict(orient="records")]

    _LOG.debug("dashboard page %d/%d (%d countries)", page, total_pages, len(df))
    return DashboardPage(
        top_section=data.top_section,
        countries=countries,
        totals=totals,
        page=page,
        total_pages=total_pages,
    )
