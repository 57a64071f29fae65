"""
Live checks against the statistics download page.

These need network access and are skipped on CI runners.
"""

import pytest

from api.exceptions import ArchiveNotFoundError, NetworkError
from api.locator import RegexDatasetLocator
from utils.config import get_app_config


@pytest.mark.skip_in_ci
def test_live_page_gives_link_or_typed_error():
    """The configured page either yields a dated link or fails with a typed error."""
    settings = get_app_config().reproduction
    locator = RegexDatasetLocator(settings.page_url, settings.link_pattern, settings.date_pattern,
                                  settings.date_format, timeout=settings.timeout_seconds)
    try:
        link = locator.find_latest()
    except (ArchiveNotFoundError, NetworkError) as e:
        pytest.skip(f"Download page unavailable: {e}")
    assert link.url.startswith("https://")
    assert link.archive_date.year >= 2020
