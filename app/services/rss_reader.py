"""RSS and Atom feed reader.

Downloads a feed document with httpx and parses it with BeautifulSoup's XML
parser into ``FeedItem`` records ordered newest first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.exceptions.feed import FeedFetchError, FeedParseError
from models.base import as_naive_utc


logger = logging.getLogger(__name__)

DATE_TAGS = ["pubDate", "published", "updated", "date"]
SUMMARY_TAGS = ["description", "summary", "content"]


@dataclass
class FeedItem:
    """One entry of a feed document."""

    title: str
    link: Optional[str]
    published: Optional[datetime] = None
    summary: Optional[str] = None


def parse_feed_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 822 (RSS) or ISO 8601 (Atom) date into naive UTC."""
    if not value:
        return None
    value = value.strip()
    try:
        return as_naive_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        pass
    try:
        return as_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        logger.debug(f"Unparseable feed date: {value!r}")
        return None


def _text(tag) -> Optional[str]:
    if tag is None:
        return None
    text = tag.get_text(strip=True)
    return text or None


def _clean_html(text: Optional[str]) -> Optional[str]:
    """Summaries frequently carry escaped HTML; keep the readable text only."""
    if not text:
        return None
    clean = BeautifulSoup(text, "lxml").get_text(" ", strip=True)
    return clean or None


def _item_link(entry) -> Optional[str]:
    # Atom: <link rel="alternate" href="..."/>; RSS: <link>...</link>
    for link in entry.find_all("link"):
        href = link.get("href")
        if href and link.get("rel", "alternate") in ("alternate", ["alternate"]):
            return href.strip()
        text = link.get_text(strip=True)
        if text:
            return text
    guid = entry.find("guid")
    if guid is not None and guid.get("isPermaLink", "true") != "false":
        return _text(guid)
    return None


def parse_feed(content: bytes | str, url: str = "") -> list[FeedItem]:
    """Parse a feed document into items, newest first.

    Items without a publish date keep their document order after dated ones.

    Raises:
        FeedParseError: the document is not an RSS, RDF or Atom feed
    """
    soup = BeautifulSoup(content, "lxml-xml")
    if soup.find(["rss", "feed", "RDF"]) is None:
        raise FeedParseError(url, "document is not an RSS or Atom feed")

    items = []
    for entry in soup.find_all(["item", "entry"]):
        title = _text(entry.find("title")) or ""
        link = _item_link(entry)
        if not title and not link:
            continue
        items.append(
            FeedItem(
                title=title,
                link=link,
                published=parse_feed_date(_text(entry.find(DATE_TAGS))),
                summary=_clean_html(_text(entry.find(SUMMARY_TAGS))),
            )
        )

    return sorted(
        items,
        key=lambda item: (item.published is not None, item.published or datetime.min),
        reverse=True,
    )


class RssReader:
    """Fetches and parses feed documents."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.feed_fetch_timeout_seconds
        self.retries = max(1, retries if retries is not None else settings.feed_fetch_retries)
        self.user_agent = user_agent or settings.feed_user_agent
        self.transport = transport

    async def fetch(self, url: str) -> list[FeedItem]:
        """Download and parse one feed.

        Transport errors are retried with exponential backoff; HTTP error
        statuses are not.

        Raises:
            FeedFetchError: the document could not be downloaded
            FeedParseError: the document could not be parsed
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(httpx.TransportError),
                    stop=stop_after_attempt(self.retries),
                    wait=wait_exponential(multiplier=1, min=1, max=10),
                    before_sleep=before_sleep_log(logger, logging.WARNING),
                    reraise=True,
                ):
                    with attempt:
                        response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedFetchError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedFetchError(url, f"{type(e).__name__}: {str(e)}") from e

        items = parse_feed(response.content, url)
        logger.debug(f"Fetched {len(items)} items from {url}")
        return items


# Create singleton instance
rss_reader = RssReader()
