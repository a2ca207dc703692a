from flask import Flask, request, Response
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.serving import make_server
from urllib.parse import unquote
import json
import os
import signal
import sys
import argparse
import logging
import threading
import yaml

import fetcher
import feed_builder

VERSION = "1.0"
LOG_LEVEL = os.environ.get("PODCAST2RSS_LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=LOG_LEVEL, format="[%(asctime)s] [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

HOST = os.environ.get("PODCAST2RSS_HOST", "0.0.0.0")
PORT = int(os.environ.get("PODCAST2RSS_PORT", 3000))
FEED_TTL = int(os.environ.get("PODCAST2RSS_FEED_TTL", feed_builder.DEFAULT_TTL))
FETCH_TIMEOUT = os.environ.get("PODCAST2RSS_FETCH_TIMEOUT")
FETCH_TIMEOUT = float(FETCH_TIMEOUT) if FETCH_TIMEOUT else None
USER_AGENT = os.environ.get("PODCAST2RSS_USER_AGENT", f"podcast2rss/{VERSION}")
SETTINGS = os.environ.get("PODCAST2RSS_SETTINGS", "./data/settings.yaml")

RSS_MIMETYPE = "application/rss+xml; charset=utf-8"
METADATA_HEADER = "X-Podcast-Metadata"


def configure(app, settings_path=SETTINGS):
    """Fill app.config from the environment, then from the optional YAML settings file."""
    app.config.from_mapping(
        HOST=HOST,
        PORT=PORT,
        FEED_TTL=FEED_TTL,
        FETCH_TIMEOUT=FETCH_TIMEOUT,
        USER_AGENT=USER_AGENT,
        GENERATOR=feed_builder.DEFAULT_GENERATOR,
        LANGUAGE=feed_builder.DEFAULT_LANGUAGE,
        SETTINGS=settings_path,
    )
    if settings_path and os.path.exists(settings_path):
        # only upper case keys are taken over by flask
        app.config.from_file(settings_path, load=yaml.safe_load)
        logger.info(f"settings loaded from {settings_path}")
    return app


app = configure(Flask(__name__))


def metadata_header(document):
    """Serialize the root-level scalars of the podcast document for X-Podcast-Metadata.

    The value is compact JSON with a fixed key order; absent fields are null.
    """
    return json.dumps(document.metadata(), separators=(",", ":"))


def get_diagnostics():
    result = {
        "diagnostics": {
            "HOST": app.config["HOST"],
            "PORT": app.config["PORT"],
            "FEED_TTL": app.config["FEED_TTL"],
            "FETCH_TIMEOUT": app.config["FETCH_TIMEOUT"],
            "USER_AGENT": app.config["USER_AGENT"],
            "GENERATOR": app.config["GENERATOR"],
            "LANGUAGE": app.config["LANGUAGE"],
            "SETTINGS": app.config["SETTINGS"],
            "LOG_LEVEL": LOG_LEVEL,
            "version": VERSION,
        }
    }
    return result


def convert(podcast_url, latest_podcasts_url=None, config=None):
    """Fetch the podcast document (and optionally the latest episodes) and build the feed.

    Returns (rss_xml, document). Errors from the primary fetch and from the
    mapping propagate; the latest episodes fetch never raises.
    """
    config = config or app.config
    timeout = config["FETCH_TIMEOUT"]
    user_agent = config["USER_AGENT"]

    podcast_data = fetcher.fetch_json(podcast_url, timeout=timeout, user_agent=user_agent)

    latest_episodes = None
    if latest_podcasts_url:
        latest_episodes = fetcher.fetch_latest_episodes(latest_podcasts_url, timeout=timeout, user_agent=user_agent)

    document = feed_builder.load_document(podcast_data)
    rss_xml = feed_builder.build_feed(
        document,
        latest_episodes,
        ttl=config["FEED_TTL"],
        generator=config["GENERATOR"],
        language=config["LANGUAGE"],
    )
    return rss_xml, document


@app.errorhandler(NotFound)
@app.errorhandler(MethodNotAllowed)
def not_found(e):
    return Response("Not Found", status=404, mimetype="text/plain")


@app.route("/convert", methods=["GET"])
def convert_route():
    url_param = request.args.get("url")
    latest_param = request.args.get("latestPodcastsUrl")

    if not url_param:
        return Response("Missing required `url` query parameter", status=400, mimetype="text/plain")

    try:
        podcast_url = unquote(url_param)
        latest_podcasts_url = unquote(latest_param) if latest_param else None

        rss_xml, document = convert(podcast_url, latest_podcasts_url)

        return Response(
            rss_xml,
            status=200,
            content_type=RSS_MIMETYPE,
            headers={METADATA_HEADER: metadata_header(document)},
        )

    except Exception as e:
        logger.exception(f"Conversion error for {request.url}")
        return Response(f"Failed to convert podcast JSON: {e}", status=500, mimetype="text/plain")


class FeedServer:
    """WSGI server for the converter with an explicit start/stop lifecycle."""

    def __init__(self, flask_app=None, host=None, port=None):
        self.app = flask_app or app
        self.host = host if host is not None else self.app.config["HOST"]
        self.port = port if port is not None else self.app.config["PORT"]
        self._server = None
        self._thread = None

    @property
    def running(self):
        return self._server is not None

    def start(self):
        """Bind the port and serve in a background thread."""
        if self.running:
            raise RuntimeError("server already started")
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever, name="podcast2rss", daemon=True)
        self._thread.start()
        logger.info(f"Podcast RSS Converter running on http://{self.host}:{self.port}")
        return self

    def stop(self):
        if not self.running:
            return
        logger.info("shutting down")
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()
        self._server = None
        self._thread = None

    def serve_forever(self):
        """Serve until SIGINT or SIGTERM, then shut down gracefully."""
        stopped = threading.Event()

        def handle_signal(signum, frame):
            logger.info(f"received {signal.Signals(signum).name}")
            stopped.set()

        previous = {sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
        self.start()
        try:
            stopped.wait()
        finally:
            self.stop()
            for sig, handler in previous.items():
                signal.signal(sig, handler)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Podcast JSON to RSS converter")
    parser.add_argument("--run", action="store_true", help="Run HTTP server")
    parser.add_argument("--convert", metavar="URL", type=str, help="Convert one podcast JSON URL and print the feed")
    parser.add_argument("--latest", metavar="URL", type=str, help="Latest episodes JSON URL used with --convert")
    parser.add_argument("--show-diagnostics", action="store_true", help="List settings")
    parser.add_argument("--settings", metavar="PATH", type=str, help="Load settings from YAML file")
    parser.add_argument("--host", metavar="HOST", type=str, help="Set listen address")
    parser.add_argument("--port", metavar="PORT", type=int, help="Set listen port")
    args = parser.parse_args(argv)

    if not (args.run or args.convert or args.show_diagnostics):
        parser.print_help()
        return 0
    if args.settings:
        configure(app, args.settings)
    if args.host:
        app.config["HOST"] = args.host
    if args.port:
        app.config["PORT"] = args.port

    if args.show_diagnostics:
        result = get_diagnostics()
        logger.info(f"Diagnostics:\n{json.dumps(result, indent=2)}")
    if args.convert:
        try:
            rss_xml, _ = convert(args.convert, args.latest)
        except Exception as e:
            logger.error(f"Failed to convert podcast JSON: {e}")
            return 1
        sys.stdout.write(rss_xml)
    if args.run:
        FeedServer(app).serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
