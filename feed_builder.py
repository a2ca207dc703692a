"""
Mapping from the podcast JSON document to an RSS 2.0 feed.

The feed is assembled with feedgen; the itunes, content and media elements
come from the extension in rss_extensions. This module only decides which
values go where, escaping and layout are left to the serializer.
"""

import logging
from datetime import datetime, timezone

from feedgen.entry import FeedEntry
from feedgen.feed import FeedGenerator

from models import PodcastDocument
from rss_extensions import PodcastEntryExtension, PodcastExtension

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-us"
DEFAULT_TTL = 60
DEFAULT_GENERATOR = "podcast2rss (via python-feedgen)"
STAND_IN = "-"


class ValidationError(ValueError):
    """The podcast document does not have the expected structure."""


def load_document(data) -> PodcastDocument:
    if isinstance(data, PodcastDocument):
        return data
    try:
        return PodcastDocument.from_dict(data)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def select_episodes(episodes):
    """Return the episodes that make it into the feed.

    Only the slice [n-10, n-8) of the source order is published. With fewer
    than ten episodes the bounds follow Python's negative index rules, so for
    example five episodes yield the first two and nine episodes yield none.
    """
    n = len(episodes)
    return list(episodes[n - 10 : n - 8])


def resolve_image(episode, podcast, latest_episodes=None) -> str:
    """Episode image: latest episodes entry, then podcast image, then ""."""
    latest = latest_episodes.get(episode.uuid) if latest_episodes else None
    return (latest.image if latest else None) or podcast.image_url or ""


def parse_published(value: str) -> datetime:
    published = datetime.fromisoformat(value)
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published


def build_feed(
    document,
    latest_episodes=None,
    ttl=DEFAULT_TTL,
    generator=DEFAULT_GENERATOR,
    language=DEFAULT_LANGUAGE,
) -> str:
    """Render `document` (raw JSON dict or PodcastDocument) as pretty printed RSS.

    `latest_episodes` is an optional uuid -> LatestEpisode map used only to
    pick episode images. Raises ValidationError when the nested podcast object
    is missing.
    """
    document = load_document(document)
    podcast = document.podcast
    image_url = podcast.image_url or ""

    fg = FeedGenerator()
    fg.load_extension("dc", atom=False)
    fg.register_extension("itunes", PodcastExtension, PodcastEntryExtension, atom=False)

    # feedgen refuses empty title, link and description, the extension writes the real text
    fg.title(podcast.title or STAND_IN)
    fg.description(podcast.description or STAND_IN)
    if podcast.url:
        fg.link(href=podcast.url, rel="self")
    fg.link(href=podcast.url or STAND_IN, rel="alternate")
    fg.image(url=image_url, title=podcast.title or STAND_IN, link=podcast.url or STAND_IN)
    for path, value in (
        ("title", podcast.title),
        ("link", podcast.url),
        ("description", podcast.description),
        ("image/title", podcast.title),
        ("image/link", podcast.url),
    ):
        fg.itunes.channel_text(path, value)
    fg.language(language)
    fg.pubDate(datetime.now(timezone.utc))
    fg.ttl(ttl)
    fg.generator(generator)

    fg.itunes.itunes_author(podcast.author)
    fg.itunes.itunes_summary(podcast.description)
    fg.itunes.itunes_type(podcast.show_type)
    fg.itunes.itunes_explicit("false")
    fg.itunes.content_encoded(podcast.description_html)
    fg.itunes.itunes_category(podcast.category)
    fg.itunes.itunes_image(image_url)

    episodes = select_episodes(podcast.episodes)
    for episode in episodes:
        fe = FeedEntry()
        # add_entry() prepends on newer feedgen releases, entry() keeps source order
        fg.entry(fe)
        fe.title(episode.title or STAND_IN)
        fe.itunes.item_text("title", episode.title)
        if episode.url:
            fe.link(href=episode.url)
            fe.enclosure(url=episode.url, length=str(episode.file_size or 0), type=episode.file_type or "")
        fe.guid(episode.uuid)
        if episode.published:
            fe.published(parse_published(episode.published))
        if podcast.author:
            fe.dc.dc_creator(podcast.author)

        if episode.duration is not None:
            fe.itunes.itunes_duration(episode.duration)
        fe.itunes.itunes_episode_type(episode.type)
        fe.itunes.itunes_image(resolve_image(episode, podcast, latest_episodes))

    logger.debug(f"Built feed for '{podcast.title}' with {len(episodes)} of {len(podcast.episodes)} episodes")
    return fg.rss_str(pretty=True).decode("utf-8")
