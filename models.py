"""
Request-scoped value types for the podcast JSON documents.

Two upstream shapes are understood:

    podcast document         {"episode_frequency": ..., "podcast": {..., "episodes": [...]}}
    latest episodes document {"podcast": {"episodes": [{"uuid": ..., "image": ...}, ...]}}

Every type is built fresh from the fetched JSON with `from_dict` and never
mutated afterwards. Missing optional fields default to None so that a sparse
document still maps; only the nested "podcast" object is required.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Episode:
    uuid: str
    title: str
    url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    duration: Optional[float] = None
    published: Optional[str] = None
    type: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Episode":
        return cls(
            uuid=data.get("uuid"),
            title=data.get("title"),
            url=data.get("url"),
            file_type=data.get("file_type"),
            file_size=data.get("file_size"),
            duration=data.get("duration"),
            published=data.get("published"),
            type=data.get("type"),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class Podcast:
    uuid: str
    title: str
    url: str
    author: Optional[str] = None
    description: Optional[str] = None
    description_html: Optional[str] = None
    category: Optional[str] = None
    show_type: Optional[str] = None
    guid: Optional[str] = None
    image_url: Optional[str] = None
    audio: Optional[bool] = None
    is_private: Optional[bool] = None
    transcript_eligible: Optional[bool] = None
    fundings: Tuple[Any, ...] = ()
    episodes: Tuple[Episode, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Podcast":
        return cls(
            uuid=data.get("uuid"),
            title=data.get("title"),
            url=data.get("url"),
            author=data.get("author"),
            description=data.get("description"),
            description_html=data.get("description_html"),
            category=data.get("category"),
            show_type=data.get("show_type"),
            guid=data.get("guid"),
            image_url=data.get("image_url"),
            audio=data.get("audio"),
            is_private=data.get("is_private"),
            transcript_eligible=data.get("transcript_eligible"),
            fundings=tuple(data.get("fundings") or ()),
            episodes=tuple(Episode.from_dict(ep) for ep in data.get("episodes") or ()),
        )


# Root-level scalars exposed to clients through the X-Podcast-Metadata header, in header order.
METADATA_FIELDS = (
    "episode_frequency",
    "estimated_next_episode_at",
    "has_seasons",
    "season_count",
    "episode_count",
    "has_more_episodes",
)


@dataclass(frozen=True)
class PodcastDocument:
    podcast: Podcast
    episode_frequency: Optional[str] = None
    estimated_next_episode_at: Optional[str] = None
    has_seasons: Optional[bool] = None
    season_count: Optional[int] = None
    episode_count: Optional[int] = None
    has_more_episodes: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PodcastDocument":
        """Build a document from the parsed JSON root.

        Raises ValueError when the root is not an object or has no nested
        "podcast" object; callers translate that into their own error type.
        """
        if not isinstance(data, dict) or not isinstance(data.get("podcast"), dict):
            raise ValueError("Invalid podcast JSON structure")
        return cls(
            podcast=Podcast.from_dict(data["podcast"]),
            **{name: data.get(name) for name in METADATA_FIELDS},
        )

    def metadata(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in METADATA_FIELDS}


@dataclass(frozen=True)
class LatestEpisode:
    uuid: Optional[str]
    title: Optional[str] = None
    url: Optional[str] = None
    published: Optional[str] = None
    show_notes: Optional[str] = None
    hash: Optional[str] = None
    modified: Optional[int] = None
    image: Optional[str] = None
    transcripts: Tuple[Any, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "LatestEpisode":
        return cls(
            uuid=data.get("uuid"),
            title=data.get("title"),
            url=data.get("url"),
            published=data.get("published"),
            show_notes=data.get("show_notes"),
            hash=data.get("hash"),
            modified=data.get("modified"),
            image=data.get("image"),
            transcripts=tuple(data.get("transcripts") or ()),
        )


def index_latest_episodes(data) -> Optional[Dict[str, LatestEpisode]]:
    """Map uuid -> LatestEpisode from a latest episodes document.

    Returns None when the document has no podcast.episodes list. Entries
    without a uuid are skipped, later entries win when a uuid repeats.
    """
    podcast = data.get("podcast") if isinstance(data, dict) else None
    episodes = podcast.get("episodes") if isinstance(podcast, dict) else None
    if not isinstance(episodes, list):
        return None
    latest = {}
    for raw in episodes:
        if not isinstance(raw, dict) or raw.get("uuid") is None:
            continue
        episode = LatestEpisode.from_dict(raw)
        latest[episode.uuid] = episode
    return latest
