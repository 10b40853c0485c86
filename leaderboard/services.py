"""Service functions for looking up a handle on the leaderboard page.

These functions wire the extraction engine to the outside world so they can
be unit tested and reused from the view and the management command. They
fetch the source page with browser-like headers, hand the bytes to the
loader and engine, and assemble the JSON payload returned to callers.
"""

from __future__ import annotations

import gzip
import http.client
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict

from django.conf import settings

from .errors import MissingHandle, UpstreamUnavailable
from .extraction.config import EngineConfig, load_config
from .extraction.engine import extract
from .extraction.loader import load_document
from .extraction.normalize import format_score
from .extraction.text import normalize_identifier
from .extraction.types import CanonicalRecord, WindowStats

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_URL = 'https://www.zama.org/programs/creator-program'
DEFAULT_FETCH_TIMEOUT = 15  # seconds

BROWSER_HEADERS: Dict[str, str] = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    ),
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
}


@dataclass(frozen=True)
class FetchedPage:
    """Raw response of the outbound fetch."""

    url: str
    status: int
    content_type: str
    body: bytes


def fetch_page(url: str, timeout: int = DEFAULT_FETCH_TIMEOUT) -> FetchedPage:
    """Fetch ``url`` with browser-like headers and return the raw response.

    Parameters
    ----------
    url:
        The absolute URL of the leaderboard page.
    timeout:
        Timeout (in seconds) for the HTTP request.

    Returns
    -------
    FetchedPage
        Status, content type and body bytes of the response. Gzipped bodies
        are transparently decompressed.

    Raises
    ------
    UpstreamUnavailable
        When the request fails or the server answers with an error status.
        The upstream status code is preserved when there is one.
    """

    logger.info('Fetching %s', url)
    request = urllib.request.Request(url, headers=BROWSER_HEADERS, method='GET')
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            data = resp.read()
            status = resp.status
            content_type = resp.headers.get('Content-Type', '')
            encoding = resp.headers.get('Content-Encoding', '')
    except urllib.error.HTTPError as exc:
        logger.error('Failed to fetch %s. Status: %s', url, exc.code)
        raise UpstreamUnavailable(f'upstream returned HTTP {exc.code}', status=exc.code) from exc
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
        logger.error('Failed to fetch %s: %s', url, exc)
        raise UpstreamUnavailable(f'upstream request failed: {exc}') from exc

    if 'gzip' in encoding.lower() or 'application/x-gzip' in content_type:
        try:
            data = gzip.decompress(data)
        except OSError:
            pass

    logger.info('Page fetched. Length: %d bytes', len(data))
    return FetchedPage(url=url, status=status, content_type=content_type, body=data)


def engine_config() -> EngineConfig:
    """Return the engine configuration named by ``LEADERBOARD_ENGINE_CONFIG``."""

    return _cached_config(getattr(settings, 'LEADERBOARD_ENGINE_CONFIG', None))


@lru_cache(maxsize=4)
def _cached_config(path: str | None) -> EngineConfig:
    return load_config(path)


def lookup_rank(
    handle: str | None,
    *,
    source_url: str | None = None,
    fetcher: Callable[..., FetchedPage] | None = None,
    config: EngineConfig | None = None,
) -> CanonicalRecord:
    """Fetch the leaderboard page and return the canonical record for ``handle``.

    A handle that cannot be located yields ``found=False``. Only a missing
    handle or an unreachable/unloadable page raise.
    """

    identifier = normalize_identifier(handle)
    if not identifier:
        raise MissingHandle('Handle is required')

    url = source_url or getattr(settings, 'LEADERBOARD_SOURCE_URL', DEFAULT_SOURCE_URL)
    timeout = getattr(settings, 'LEADERBOARD_FETCH_TIMEOUT', DEFAULT_FETCH_TIMEOUT)
    page = (fetcher or fetch_page)(url, timeout=timeout)

    active_config = config or engine_config()
    document = load_document(page.body, page.content_type, active_config)
    if not document.loaded:
        raise UpstreamUnavailable('upstream document could not be loaded', status=None)
    return extract(document, identifier, active_config)


def build_payload(record: CanonicalRecord, config: EngineConfig | None = None) -> Dict[str, Any]:
    """Assemble the response body, substituting sentinels for unresolved fields."""

    active_config = config or engine_config()
    if not record.found:
        return {'found': False, 'handle': record.handle}

    if record.windows:
        stats = {
            name: _window_payload(record.windows.get(name), active_config)
            for name in active_config.get('windows', {})
        }
        return {'found': True, 'handle': record.handle, 'stats': stats}

    return {
        'found': True,
        'handle': record.handle,
        'rank': _rank_or_sentinel(record.rank, active_config),
        'score': _score_or_sentinel(record.score, active_config),
    }


def _window_payload(window: WindowStats | None, config: EngineConfig) -> Dict[str, Any]:
    if window is None:
        return {
            'rank': config.sentinel('rank'),
            'score': config.sentinel('score'),
        }
    return {
        'rank': _rank_or_sentinel(window.rank, config),
        'score': _score_or_sentinel(window.score, config),
    }


def _rank_or_sentinel(rank: int | None, config: EngineConfig) -> Any:
    return rank if rank is not None else config.sentinel('rank')


def _score_or_sentinel(score: Any, config: EngineConfig) -> Any:
    formatted = format_score(score)
    return formatted if formatted is not None else config.sentinel('score')
