from metrics import coerce_number

TOP_VIDEOS_LIMIT = 3
TABLE_VIDEOS_LIMIT = 10
MAX_TABLE_VIDEOS_LIMIT = 50
SORTABLE_COLUMNS = ("views", "likes", "comments", "published_at", "title")


def _parse_positive_int(value, default, maximum=None):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default

    if parsed < 1:
        parsed = default

    if maximum is not None:
        parsed = min(parsed, maximum)

    return parsed


def normalize_sort_direction(value):
    return "asc" if str(value).lower() == "asc" else "desc"


def rank_videos(videos, limit, positive_only=True):
    """Videos ordered by descending views; equal views keep their backend order."""
    candidates = [
        video for video in videos
        if not positive_only or coerce_number(video.views) > 0
    ]
    ranked = sorted(candidates, key=lambda video: coerce_number(video.views), reverse=True)
    return ranked[:max(0, limit)]


def top_videos(videos, limit=TOP_VIDEOS_LIMIT):
    return rank_videos(videos, limit)


def _sort_key(column):
    if column == "title":
        return lambda video: (video.title or "").lower()
    if column == "published_at":
        return lambda video: video.published_at or ""
    return lambda video: coerce_number(getattr(video, column))


def table_videos(videos, sort_column=None, sort_direction="desc", limit=TABLE_VIDEOS_LIMIT):
    """Listing for the videos table.

    Without a recognised sort column the backend order is kept. Sorting is
    stable in both directions, so ties always keep backend order.
    """
    limit = _parse_positive_int(limit, default=TABLE_VIDEOS_LIMIT, maximum=MAX_TABLE_VIDEOS_LIMIT)
    listing = list(videos)

    if sort_column in SORTABLE_COLUMNS:
        listing = sorted(
            listing,
            key=_sort_key(sort_column),
            reverse=normalize_sort_direction(sort_direction) == "desc",
        )

    return listing[:limit]
