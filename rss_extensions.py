"""
feedgen extension adding the iTunes, content and Media RSS elements that the
stock RSS generator does not emit.

Register it on a FeedGenerator before any entries are attached:

    fg.register_extension("itunes", PodcastExtension, PodcastEntryExtension, atom=False)

and then set values through `fg.itunes` / `fe.itunes`.
"""

from feedgen.ext.base import BaseEntryExtension, BaseExtension
from lxml import etree

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
MEDIA_NS = "http://search.yahoo.com/mrss/"

NAMESPACES = {
    "itunes": ITUNES_NS,
    "content": CONTENT_NS,
    "media": MEDIA_NS,
}


def _element(ns, tag, value=None, **attrib):
    elem = etree.Element(f"{{{ns}}}{tag}")
    for key, attr in attrib.items():
        elem.attrib[key] = "" if attr is None else str(attr)
    if value is not None:
        elem.text = str(value)
    return elem


def _set_texts(parent, texts):
    for path, value in texts.items():
        elem = parent.find(path)
        if elem is not None:
            elem.text = value


def _insert_before_items(parent, elements):
    # Newer feedgen releases run extensions after the items are attached.
    first_item = parent.find("item")
    index = len(parent) if first_item is None else parent.index(first_item)
    for offset, elem in enumerate(elements):
        parent.insert(index + offset, elem)


class PodcastExtension(BaseExtension):
    """Channel level itunes:*, content:encoded and media namespace declaration."""

    def __init__(self):
        self.__author = None
        self.__summary = None
        self.__type = None
        self.__explicit = "false"
        self.__encoded = None
        self.__category = None
        self.__image = None
        self.__texts = {}

    def extend_ns(self):
        return dict(NAMESPACES)

    def extend_rss(self, rss_feed):
        channel = rss_feed[0]
        elements = []
        if self.__author is not None:
            elements.append(_element(ITUNES_NS, "author", self.__author))
        if self.__summary is not None:
            elements.append(_element(ITUNES_NS, "summary", self.__summary))
        if self.__type is not None:
            elements.append(_element(ITUNES_NS, "type", self.__type))
        elements.append(_element(ITUNES_NS, "explicit", self.__explicit))
        if self.__encoded is not None:
            elements.append(_element(CONTENT_NS, "encoded", self.__encoded))
        if self.__category is not None:
            elements.append(_element(ITUNES_NS, "category", text=self.__category))
        if self.__image is not None:
            elements.append(_element(ITUNES_NS, "image", href=self.__image))
        _insert_before_items(channel, elements)
        _set_texts(channel, self.__texts)
        return rss_feed

    def channel_text(self, path, value=None):
        """Overwrite the text of the rendered channel element at `path`.

        feedgen refuses empty required fields, so those get a stand-in value
        that is replaced here. None is written as an empty string.
        """
        self.__texts[path] = "" if value is None else value

    def itunes_author(self, author=None):
        if author is not None:
            self.__author = author
        return self.__author

    def itunes_summary(self, summary=None):
        if summary is not None:
            self.__summary = summary
        return self.__summary

    def itunes_type(self, show_type=None):
        if show_type is not None:
            self.__type = show_type
        return self.__type

    def itunes_explicit(self, explicit=None):
        """Get or set itunes:explicit. Written as given, "false" unless changed."""
        if explicit is not None:
            self.__explicit = explicit
        return self.__explicit

    def content_encoded(self, html=None):
        if html is not None:
            self.__encoded = html
        return self.__encoded

    def itunes_category(self, category=None):
        """Get or set the category. It is written as the text attribute of an
        empty itunes:category element; no check against Apple's category list
        is made."""
        if category is not None:
            self.__category = category
        return self.__category

    def itunes_image(self, href=None):
        if href is not None:
            self.__image = href
        return self.__image


class PodcastEntryExtension(BaseEntryExtension):
    """Item level itunes:*, media:content and the empty description placeholder."""

    def __init__(self):
        self.__duration = None
        self.__episode_type = None
        self.__image = None
        self.__texts = {}

    def extend_rss(self, entry):
        if entry.find("description") is None:
            # feedgen drops empty descriptions; items always carry one.
            description = etree.Element("description")
            link = entry.find("link")
            title = entry.find("title")
            anchor = link if link is not None else title
            if anchor is None:
                entry.insert(0, description)
            else:
                anchor.addnext(description)
        _set_texts(entry, self.__texts)

        if self.__duration is not None:
            entry.append(_element(ITUNES_NS, "duration", self.__duration))
        if self.__episode_type is not None:
            entry.append(_element(ITUNES_NS, "episodeType", self.__episode_type))
        if self.__image is not None:
            entry.append(_element(ITUNES_NS, "image", href=self.__image))
            entry.append(_element(MEDIA_NS, "content", url=self.__image, medium="image", type="image/jpeg"))
        return entry

    def item_text(self, path, value=None):
        """Overwrite the text of the rendered item element at `path`, None as ""."""
        self.__texts[path] = "" if value is None else value

    def itunes_duration(self, seconds=None):
        """Get or set the duration. Fractional seconds are truncated toward zero."""
        if seconds is not None:
            self.__duration = int(seconds)
        return self.__duration

    def itunes_episode_type(self, episode_type=None):
        if episode_type is not None:
            self.__episode_type = episode_type
        return self.__episode_type

    def itunes_image(self, href=None):
        """Get or set the episode image, used for both itunes:image and media:content."""
        if href is not None:
            self.__image = href
        return self.__image
