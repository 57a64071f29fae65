"""Locates the latest dated surveillance archive on the statistics download page."""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

import requests

from .exceptions import ArchiveNotFoundError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_URL = "https://covid19.ssi.dk/overvagningsdata/download-fil-med-overvaagningdata"
DEFAULT_LINK_PATTERN = r'href="(https://files\.ssi\.dk/covid19/overvagning/data/[^"]*?-\d{8}[^"]*)"'
DEFAULT_DATE_PATTERN = r"-(\d{8})"
DEFAULT_DATE_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class DatasetLink:
    """A downloadable archive and the date embedded in its file name."""
    url: str
    archive_date: date


class DatasetLocator(ABC):
    """Finds the most recent dataset; swap implementations to change the matching strategy."""

    @abstractmethod
    def find_latest(self) -> DatasetLink:
        """Return the link to the most recent archive."""


def extract_archive_date(
    url: str,
    date_pattern: str = DEFAULT_DATE_PATTERN,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> date:
    """Extract the date embedded in an archive URL.

    Examples:
        >>> extract_archive_date("https://files.ssi.dk/covid19/overvagning/data/download-fil-20210615-ab12")
        datetime.date(2021, 6, 15)

    Raises:
        ArchiveNotFoundError: If the URL carries no date in the expected form
    """
    for candidate in re.findall(date_pattern, url):
        try:
            return datetime.strptime(candidate, date_format).date()
        except ValueError:
            continue
    raise ArchiveNotFoundError(f"No date matching '{date_pattern}' ({date_format}) in {url}")


def fetch_page(url: str, timeout: float = 30.0) -> str:
    """Fetch a web page and return its text.

    Raises:
        NetworkError: On connection failures, timeouts and non-success responses
    """
    try:
        logger.info(f"Fetching download page: {url}")
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        logger.error(f"Download page returned an error: {e}")
        raise NetworkError(f"Could not fetch {url}: {e}", status_code=status, url=url) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Error fetching download page: {e}", exc_info=True)
        raise NetworkError(f"Could not fetch {url}: {e}", url=url) from e
    logger.info(f"Fetched {len(response.text)} characters from {url}")
    return response.text


class RegexDatasetLocator(DatasetLocator):
    """Scrapes the download page for archive links with a regular expression."""

    def __init__(
        self,
        page_url: str = DEFAULT_PAGE_URL,
        link_pattern: str = DEFAULT_LINK_PATTERN,
        date_pattern: str = DEFAULT_DATE_PATTERN,
        date_format: str = DEFAULT_DATE_FORMAT,
        timeout: float = 30.0,
    ):
        self.page_url = page_url
        self.link_pattern = link_pattern
        self.date_pattern = date_pattern
        self.date_format = date_format
        self.timeout = timeout

    def find_links(self, html: str) -> List[DatasetLink]:
        """Return every dated archive link found in the page markup."""
        links = []
        for url in re.findall(self.link_pattern, html):
            try:
                links.append(DatasetLink(url, extract_archive_date(url, self.date_pattern, self.date_format)))
            except ArchiveNotFoundError:
                logger.warning(f"Skipping link without a valid date: {url}")
        return links

    def find_latest(self, html: Optional[str] = None) -> DatasetLink:
        """Return the archive link with the latest embedded date.

        Args:
            html: Page markup; fetched from `page_url` when omitted

        Raises:
            ArchiveNotFoundError: If the page holds no link matching `link_pattern`
            NetworkError: If the page cannot be fetched
        """
        if html is None:
            html = fetch_page(self.page_url, self.timeout)
        links = self.find_links(html)
        if not links:
            raise ArchiveNotFoundError(
                f"No archive link matching '{self.link_pattern}' on {self.page_url}; "
                "the page layout may have changed",
                page_url=self.page_url,
            )
        latest = max(links, key=lambda link: link.archive_date)
        logger.info(f"Latest archive: {latest.url} ({latest.archive_date.isoformat()})")
        return latest
