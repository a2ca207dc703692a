"""Shared fixtures: podcast documents shaped like the upstream JSON and a stub for requests.get."""

import json
from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest
import requests

PODCAST_URL = "https://example.com/podcast.json"
LATEST_URL = "https://example.com/latest.json"
PODCAST_IMAGE = "https://example.com/cover.jpg"
FIRST_PUBLISHED = datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

NS = {
    "itunes": "http://www.itunes.com/dtds/podcast-1.0.dtd",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "media": "http://search.yahoo.com/mrss/",
    "atom": "http://www.w3.org/2005/Atom",
    "dc": "http://purl.org/dc/elements/1.1/",
}


def make_episode(index, **overrides):
    episode = {
        "uuid": f"e{index}",
        "title": f"Episode {index}",
        "url": f"https://example.com/episodes/{index}.mp3",
        "file_type": "audio/mpeg",
        "file_size": 1000 + index,
        "duration": 60.5 + index,
        "published": (FIRST_PUBLISHED + timedelta(days=index)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "type": "full",
    }
    episode.update(overrides)
    return episode


def make_document(episode_count=12, episodes=None, **podcast_overrides):
    podcast = {
        "url": "https://example.com/show",
        "title": "Example Show",
        "author": "Jane Host",
        "description": "A show about examples.",
        "description_html": "<p>A show about <b>examples</b>.</p>",
        "category": "Technology",
        "audio": True,
        "show_type": "episodic",
        "uuid": "podcast-uuid",
        "fundings": [],
        "guid": "podcast-guid",
        "is_private": False,
        "transcript_eligible": False,
        "image_url": PODCAST_IMAGE,
        "episodes": episodes if episodes is not None else [make_episode(i) for i in range(episode_count)],
    }
    podcast.update(podcast_overrides)
    return {
        "episode_frequency": "weekly",
        "estimated_next_episode_at": "2024-02-01T10:00:00Z",
        "has_seasons": False,
        "season_count": 1,
        "episode_count": len(podcast["episodes"]),
        "has_more_episodes": True,
        "podcast": podcast,
    }


def make_latest(*entries):
    return {
        "podcast": {
            "uuid": "podcast-uuid",
            "episodes": [
                {
                    "uuid": uuid,
                    "title": f"Latest {uuid}",
                    "url": f"https://example.com/latest/{uuid}",
                    "published": "2024-01-01T10:00:00Z",
                    "show_notes": "",
                    "hash": "abc",
                    "modified": 1700000000,
                    "image": image,
                    "transcripts": [],
                }
                for uuid, image in entries
            ],
        }
    }


def fake_response(url, status=200, body=None, text=None):
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.reason = {200: "OK", 404: "Not Found", 500: "Internal Server Error"}.get(status, "")
    if text is None:
        text = json.dumps(body)
    resp._content = text.encode("utf-8")
    resp._content_consumed = True
    resp.encoding = "utf-8"
    return resp


@pytest.fixture
def document():
    return make_document()


@pytest.fixture
def upstream():
    """Route requests.get by URL.

    Register responses with upstream[url] = response or exception; unknown
    URLs raise ConnectionError.
    """
    routes = {}

    def get(url, *args, **kwargs):
        result = routes.get(url)
        if result is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return result

    with mock.patch("fetcher.requests.get", side_effect=get):
        yield routes
