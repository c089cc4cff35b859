import csv
import io
import tempfile

from openpyxl import Workbook

from metrics import channel_totals, derive_insights, estimate_earnings, predict_growth
from view_model import serialize_video

VIDEO_COLUMNS = ("video_id", "title", "url", "views", "likes", "comments", "published")


def channel_summary_rows(snapshot):
    """(field, value) pairs describing the analyzed channel."""
    channel = snapshot.channel
    subs, views, vids = channel_totals(channel)
    insights = derive_insights(subs, views, vids)
    earnings = estimate_earnings(views)
    growth = predict_growth(subs)

    return [
        ("query", snapshot.query),
        ("title", channel.title if channel else ""),
        ("subscribers", int(subs)),
        ("views", int(views)),
        ("videos", int(vids)),
        ("average_views_per_video", insights["average_views_per_video"]),
        ("subscribers_per_video", insights["subscribers_per_video"]),
        ("health_score", insights["health_score"]),
        ("earnings_low", earnings["low"]),
        ("earnings_high", earnings["high"]),
        ("growth_min", growth["min"]),
        ("growth_max", growth["max"]),
    ]


def iter_video_rows(snapshot):
    for video in snapshot.videos:
        serialized = serialize_video(video)
        yield tuple(serialized[column] for column in VIDEO_COLUMNS)


def stream_snapshot_csv(snapshot):
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush():
        value = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return value

    yield "=== CHANNEL ===\n"
    writer.writerow(("field", "value"))
    writer.writerows(channel_summary_rows(snapshot))
    yield flush()
    yield "\n"

    yield "=== VIDEOS ===\n"
    writer.writerow(VIDEO_COLUMNS)
    yield flush()
    for row in iter_video_rows(snapshot):
        writer.writerow(row)
        yield flush()
    yield "\n"


def build_xlsx_export_file(snapshot):
    workbook = Workbook(write_only=True)

    try:
        channel_sheet = workbook.create_sheet(title="channel")
        channel_sheet.append(("field", "value"))
        for row in channel_summary_rows(snapshot):
            channel_sheet.append(row)

        videos_sheet = workbook.create_sheet(title="videos")
        videos_sheet.append(VIDEO_COLUMNS)
        for row in iter_video_rows(snapshot):
            videos_sheet.append(row)

        temp_file = tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False)
        temp_file_path = temp_file.name
        temp_file.close()
        workbook.save(temp_file_path)
        return temp_file_path
    finally:
        workbook.close()
