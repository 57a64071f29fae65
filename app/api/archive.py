"""Downloads a surveillance ZIP archive and extracts a single member in memory."""

import io
import logging
import zipfile

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ArchiveMemberError, NetworkError
from .locator import DatasetLink

logger = logging.getLogger(__name__)

DEFAULT_MEMBER = "Test_pos_over_time.csv"
RETRY_STATUSES = (429, 500, 502, 503, 504)


def _session(retries: int, backoff_factor: float) -> requests.Session:
    session = requests.Session()
    if retries > 0:
        policy = Retry(
            total=retries,
            backoff_factor=backoff_factor,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=["GET"],
            raise_on_status=False,  # last 429/5xx response goes to raise_for_status
        )
        adapter = HTTPAdapter(max_retries=policy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session


def download_archive(url: str, timeout: float = 30.0, retries: int = 0, backoff_factor: float = 0.5) -> bytes:
    """Fetch the archive at `url` and return its raw bytes.

    Args:
        url: Archive URL
        timeout: Per-request timeout in seconds
        retries: Number of retries on connection errors and 429/5xx responses (0 disables)
        backoff_factor: Exponential backoff factor between retries

    Raises:
        NetworkError: On connection failures, timeouts and non-success responses
    """
    with _session(retries, backoff_factor) as session:
        try:
            logger.info(f"Downloading archive: {url}")
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Archive download returned an error: {e}")
            raise NetworkError(f"Could not download {url}: {e}", status_code=status, url=url) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Error downloading archive: {e}", exc_info=True)
            raise NetworkError(f"Could not download {url}: {e}", url=url) from e
        logger.info(f"Downloaded {len(response.content)} bytes")
        return response.content


def extract_member(content: bytes, member: str = DEFAULT_MEMBER) -> io.BytesIO:
    """Extract one named member of a ZIP archive into memory.

    Members may sit in a sub-folder of the archive; the first entry whose
    base name equals `member` is used.

    Raises:
        ArchiveMemberError: If the archive is corrupt or lacks the member
    """
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = archive.namelist()
            matches = [name for name in names if name == member or name.rsplit("/", 1)[-1] == member]
            if not matches:
                raise ArchiveMemberError(
                    f"Archive has no member '{member}' (members: {', '.join(names[:10])})",
                    member=member,
                )
            with archive.open(matches[0]) as handle:
                data = handle.read()
    except zipfile.BadZipFile as e:
        raise ArchiveMemberError(f"Archive is not a valid ZIP file: {e}", member=member) from e
    logger.info(f"Extracted {member} ({len(data)} bytes)")
    return io.BytesIO(data)


def download_and_extract(
    link: DatasetLink,
    member: str = DEFAULT_MEMBER,
    timeout: float = 30.0,
    retries: int = 0,
    backoff_factor: float = 0.5,
) -> io.BytesIO:
    """Download the archive behind `link` and return the named member."""
    content = download_archive(link.url, timeout=timeout, retries=retries, backoff_factor=backoff_factor)
    return extract_member(content, member)
