import logging

import requests

from models import index_latest_episodes

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "podcast2rss"


class FetchError(Exception):
    """An upstream JSON document could not be retrieved or parsed."""

    def __init__(self, url, message, status_code=None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def fetch_json(url, timeout=None, user_agent=DEFAULT_USER_AGENT):
    """GET `url` and return the decoded JSON body.

    A timeout of None waits for the upstream indefinitely. Raises FetchError on
    transport failures, non-2xx responses and bodies that are not JSON.
    """
    try:
        resp = requests.get(url, headers={"User-Agent": user_agent, "Accept": "application/json"}, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(url, f"Failed to fetch podcast JSON: {e} from {url}") from e

    try:
        if not resp.ok:
            raise FetchError(
                url,
                f"Failed to fetch podcast JSON: {resp.status_code} {resp.reason} from {url}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise FetchError(
                url, f"Invalid JSON in response from {url}: {e}", status_code=resp.status_code
            ) from e
    finally:
        resp.close()


def fetch_latest_episodes(url, timeout=None, user_agent=DEFAULT_USER_AGENT):
    """Best-effort fetch of the latest episodes document.

    Returns a uuid -> LatestEpisode map, or None when the document is
    unavailable or not shaped like {"podcast": {"episodes": [...]}}. Failures
    are logged and never raised; the feed is built without enrichment instead.
    """
    try:
        data = fetch_json(url, timeout=timeout, user_agent=user_agent)
        latest = index_latest_episodes(data)
    except Exception as e:
        logger.warning(f"Error processing latest podcasts JSON from {url}: {e}. Proceeding without it.")
        return None

    if latest is None:
        logger.warning(
            f"Latest podcasts JSON from {url} did not contain expected 'podcast.episodes' structure. "
            "Proceeding without it."
        )
        return None

    logger.info(f"Fetched and mapped {len(latest)} episodes from latest podcasts URL")
    return latest
