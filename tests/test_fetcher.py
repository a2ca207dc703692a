import logging

import pytest
import requests

import fetcher
from tests.conftest import LATEST_URL, PODCAST_URL, fake_response, make_document, make_latest


def test_fetch_json_returns_body(upstream):
    upstream[PODCAST_URL] = fake_response(PODCAST_URL, body={"podcast": {"title": "x"}})
    assert fetcher.fetch_json(PODCAST_URL) == {"podcast": {"title": "x"}}


def test_fetch_json_passes_timeout_and_user_agent(upstream):
    upstream[PODCAST_URL] = fake_response(PODCAST_URL, body={})
    fetcher.fetch_json(PODCAST_URL, timeout=2.5, user_agent="tests/1")
    _, kwargs = fetcher.requests.get.call_args
    assert kwargs["timeout"] == 2.5
    assert kwargs["headers"]["User-Agent"] == "tests/1"


def test_fetch_json_defaults_to_no_timeout(upstream):
    upstream[PODCAST_URL] = fake_response(PODCAST_URL, body={})
    fetcher.fetch_json(PODCAST_URL)
    _, kwargs = fetcher.requests.get.call_args
    assert kwargs["timeout"] is None


def test_fetch_json_non_success_status(upstream):
    upstream[PODCAST_URL] = fake_response(PODCAST_URL, status=404, text="missing")
    with pytest.raises(fetcher.FetchError) as excinfo:
        fetcher.fetch_json(PODCAST_URL)
    assert excinfo.value.url == PODCAST_URL
    assert excinfo.value.status_code == 404
    assert "404 Not Found" in str(excinfo.value)
    assert PODCAST_URL in str(excinfo.value)


def test_fetch_json_invalid_json(upstream):
    upstream[PODCAST_URL] = fake_response(PODCAST_URL, text="<html>not json</html>")
    with pytest.raises(fetcher.FetchError) as excinfo:
        fetcher.fetch_json(PODCAST_URL)
    assert excinfo.value.status_code == 200
    assert "Invalid JSON" in str(excinfo.value)


def test_fetch_json_transport_error(upstream):
    upstream[PODCAST_URL] = requests.ConnectionError("connection refused")
    with pytest.raises(fetcher.FetchError) as excinfo:
        fetcher.fetch_json(PODCAST_URL)
    assert excinfo.value.status_code is None
    assert "connection refused" in str(excinfo.value)


def test_fetch_latest_episodes_maps_by_uuid(upstream, caplog):
    upstream[LATEST_URL] = fake_response(LATEST_URL, body=make_latest(("e2", "http://x/e2.jpg"), ("e3", "http://x/e3.jpg")))
    with caplog.at_level(logging.INFO, logger="fetcher"):
        latest = fetcher.fetch_latest_episodes(LATEST_URL)
    assert latest["e2"].image == "http://x/e2.jpg"
    assert latest["e3"].image == "http://x/e3.jpg"
    assert "mapped 2 episodes" in caplog.text


@pytest.mark.parametrize(
    "response",
    [
        fake_response(LATEST_URL, status=500, text="boom"),
        fake_response(LATEST_URL, text="{not json"),
        requests.Timeout("timed out"),
    ],
    ids=["status", "malformed", "transport"],
)
def test_fetch_latest_episodes_swallows_failures(upstream, caplog, response):
    upstream[LATEST_URL] = response
    with caplog.at_level(logging.WARNING, logger="fetcher"):
        assert fetcher.fetch_latest_episodes(LATEST_URL) is None
    assert "Proceeding without it" in caplog.text


def test_fetch_latest_episodes_unexpected_shape(upstream, caplog):
    upstream[LATEST_URL] = fake_response(LATEST_URL, body=make_document(episode_count=1)["podcast"])
    with caplog.at_level(logging.WARNING, logger="fetcher"):
        assert fetcher.fetch_latest_episodes(LATEST_URL) is None
    assert "podcast.episodes" in caplog.text


def test_fetch_latest_episodes_keeps_entries_beside_one_without_uuid(upstream):
    body = make_latest(("e2", "http://x/e2.jpg"))
    body["podcast"]["episodes"].append({"title": "no uuid", "image": "http://x/orphan.jpg"})
    upstream[LATEST_URL] = fake_response(LATEST_URL, body=body)
    latest = fetcher.fetch_latest_episodes(LATEST_URL)
    assert set(latest) == {"e2"}
    assert latest["e2"].image == "http://x/e2.jpg"
