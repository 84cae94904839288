"""Regex scraping of the static APOD monthly calendar pages.

The calendar page (``calendar/caYYMM.html``) links every day of the month to
``apYYMMDD.html``; most links wrap a thumbnail whose ``alt`` text is the
title, some wrap plain text. Pages without a thumbnail are resolved later
from the day page itself.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import date

ANCHOR_RE = re.compile(
    r'<a\s+href="(?P<page>ap\d{6}\.html)"[^>]*>(?P<inner>.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)
IMG_RE = re.compile(r'<img[^>]*src="(?P<src>[^"]+)"[^>]*>', re.IGNORECASE | re.DOTALL)
ALT_RE = re.compile(r'alt="(?P<alt>[^"]+)"', re.IGNORECASE)
OG_IMAGE_RE = re.compile(
    r'<meta[^>]+property="og:image"[^>]+content="(?P<og>[^"]+)"[^>]*>', re.IGNORECASE
)
TITLE_RE = re.compile(r"<title>(?P<t>[^<]+)</title>", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class CalendarEntry:
    date: date
    page_url: str
    title: str = ""
    image_url: str = ""
    inner_html: str = ""


def calendar_url(base_url: str, year: int, month: int) -> str:
    return f"{base_url.rstrip('/')}/calendar/ca{year % 100:02d}{month:02d}.html"


def absolute_url(base_url: str, src: str) -> str:
    if src.lower().startswith("http"):
        return src
    return base_url.rstrip("/") + "/" + src.lstrip("/")


def _page_date(page: str, year: int) -> date | None:
    yy, mm, dd = int(page[2:4]), int(page[4:6]), int(page[6:8])
    parsed_year = 1900 + yy if yy >= 95 else 2000 + yy
    if parsed_year != year:
        # older months occasionally link across years; the requested year wins
        parsed_year = year
    try:
        return date(parsed_year, mm, dd)
    except ValueError:
        return None


def parse_calendar(page_html: str, year: int, month: int, base_url: str) -> list[CalendarEntry]:
    """Extract one entry per day linked from a monthly calendar page."""
    entries: list[CalendarEntry] = []
    seen: set[str] = set()
    for match in ANCHOR_RE.finditer(page_html):
        day = _page_date(match.group("page"), year)
        if day is None or day.year != year or day.month != month:
            continue

        page_url = absolute_url(base_url, match.group("page"))
        if page_url.lower() in seen:
            continue
        seen.add(page_url.lower())

        inner = match.group("inner") or ""
        entry = CalendarEntry(date=day, page_url=page_url, inner_html=inner)
        img = IMG_RE.search(inner)
        if img:
            entry.image_url = absolute_url(base_url, img.group("src"))
            alt = ALT_RE.search(inner)
            if alt:
                entry.title = html.unescape(alt.group("alt")).strip()
        entries.append(entry)
    return entries


def extract_page_image(page_html: str, base_url: str) -> str:
    og = OG_IMAGE_RE.search(page_html)
    if og:
        return absolute_url(base_url, og.group("og"))
    img = IMG_RE.search(page_html)
    if img:
        return absolute_url(base_url, img.group("src"))
    return ""


def extract_page_title(page_html: str) -> str:
    match = TITLE_RE.search(page_html)
    return html.unescape(match.group("t")).strip() if match else ""


def text_title(inner_html: str, day: date) -> str:
    text = html.unescape(TAG_RE.sub(" ", inner_html or ""))
    text = WHITESPACE_RE.sub(" ", text).strip()
    return text or f"APOD {day.isoformat()}"
