import logging
import os

import requests
from pydantic import ValidationError

from schemas import ChannelRecord, VideoRecord

logger = logging.getLogger(__name__)

ANALYTICS_API_BASE = os.environ.get("ANALYTICS_API_BASE", "https://youtube-backend-1m6l.onrender.com").rstrip("/")
REQUEST_TIMEOUT = (3.05, float(os.environ.get("ANALYTICS_API_TIMEOUT", "15")))
WATCH_URL_TEMPLATE = "https://youtube.com/watch?v={video_id}"


class FetchFailure(Exception):
    """Any network error, error status or malformed payload from the analytics backend."""


session = requests.Session()


def request_json(url, params=None, timeout=REQUEST_TIMEOUT):
    """GET a JSON document, raising FetchFailure on any transport or decoding problem."""
    params = params or {}

    try:
        response = session.get(url, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchFailure(f"Request to {url} failed: {exc}") from exc

    if response.status_code >= 400:
        raise FetchFailure(f"Request to {url} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise FetchFailure(f"Response from {url} is not valid JSON") from exc


def analytics_api_get(endpoint, query):
    return request_json(f"{ANALYTICS_API_BASE}/api/{endpoint}", params={"query": query})


def fetch_channel(query):
    """Look up the channel record matching the raw query text."""
    payload = analytics_api_get("channel", query)
    if not isinstance(payload, dict):
        raise FetchFailure("Channel response is not a JSON object")

    try:
        return ChannelRecord.model_validate(payload)
    except ValidationError as exc:
        raise FetchFailure("Channel response has an unexpected shape") from exc


def fetch_videos(query):
    """Look up the channel's videos; anything but a JSON array counts as no videos."""
    payload = analytics_api_get("videos", query)
    if not isinstance(payload, list):
        logger.warning("Videos response for %r is not a list; treating as empty.", query)
        return []

    videos = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            videos.append(VideoRecord.model_validate(item))
        except ValidationError as exc:
            raise FetchFailure("Videos response has an unexpected shape") from exc
    return videos


def watch_url(video_id):
    if not video_id:
        return None
    return WATCH_URL_TEMPLATE.format(video_id=video_id)
