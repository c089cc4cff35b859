import isodate

from analytics_api import watch_url
from charts import build_chart_data
from metrics import HEALTH_SCORE_MAX, channel_totals, coerce_number, derive_insights, estimate_earnings, predict_growth
from ranking import table_videos, top_videos

NO_DESCRIPTION_MESSAGE = "No description available"


def format_count(value):
    """Thousands-separated integer, e.g. 1234567 -> "1,234,567"."""
    return f"{int(coerce_number(value)):,}"


def format_published(published_at):
    """ISO 8601 timestamp text to a YYYY-MM-DD date, or "" when unparseable."""
    if not published_at:
        return ""
    try:
        return isodate.parse_datetime(published_at).date().isoformat()
    except (isodate.ISO8601Error, ValueError, TypeError):
        try:
            return isodate.parse_date(published_at).isoformat()
        except (isodate.ISO8601Error, ValueError, TypeError):
            return ""


def serialize_video(video):
    views = coerce_number(video.views)
    return {
        "video_id": video.video_id,
        "title": video.title,
        "thumbnail": video.thumbnail,
        "url": watch_url(video.video_id),
        "views": int(views),
        "views_display": f"{format_count(views)} views",
        "likes": int(coerce_number(video.likes)),
        "comments": int(coerce_number(video.comments)),
        "published": format_published(video.published_at),
    }


def _channel_card(channel):
    return {
        "title": channel.title,
        "description": channel.description or NO_DESCRIPTION_MESSAGE,
        "thumbnail": channel.thumbnail,
    }


def _stats(subs, views, vids):
    return {
        "subscribers": int(subs),
        "views": int(views),
        "videos": int(vids),
        "subscribers_display": format_count(subs),
        "views_display": format_count(views),
        "videos_display": format_count(vids),
    }


def build_dashboard_view(snapshot, chart_scale="raw", sort_column=None, sort_direction="desc", table_limit=None):
    """Everything the presentation layer renders, derived from one snapshot.

    Pure function: metrics are recomputed on every call and nothing is cached.
    Metric sections are None while no channel is loaded.
    """
    channel = snapshot.channel
    videos = list(snapshot.videos)
    subs, views, vids = channel_totals(channel)

    view = {
        "status": snapshot.status,
        "query": snapshot.query,
        "loading": snapshot.loading,
        "error": snapshot.error,
        "channel": None,
        "stats": None,
        "insights": None,
        "earnings": None,
        "growth": None,
        "chart": None,
    }

    if channel is not None:
        insights = derive_insights(subs, views, vids)
        insights["health_label"] = f"{insights['health_score']} / {HEALTH_SCORE_MAX}"
        view.update(
            channel=_channel_card(channel),
            stats=_stats(subs, views, vids),
            insights=insights,
            earnings=estimate_earnings(views),
            growth=predict_growth(subs),
            chart=build_chart_data(subs, views, vids, scale=chart_scale),
        )

    listing_kwargs = {"sort_column": sort_column, "sort_direction": sort_direction}
    if table_limit is not None:
        listing_kwargs["limit"] = table_limit

    view["top_videos"] = [serialize_video(video) for video in top_videos(videos)]
    view["table_videos"] = [serialize_video(video) for video in table_videos(videos, **listing_kwargs)]
    view["show_channel"] = channel is not None
    view["show_chart"] = view["chart"] is not None
    view["show_top_videos"] = bool(view["top_videos"])
    view["show_table"] = bool(view["table_videos"])
    return view
