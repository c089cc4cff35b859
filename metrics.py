import math
import re

THOUSANDS_PATTERN = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")
CPM_LOW = 0.5
CPM_HIGH = 5.0
GROWTH_MIN_PERCENT = 1
GROWTH_MAX_PERCENT = 3
HEALTH_SCORE_MAX = 100


def coerce_number(value):
    """Return a finite, non-negative float for any backend field value."""
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned == "":
            return 0.0
        # float() would accept "1_000" and collapse "1,2,3" into 123.
        if "_" in cleaned:
            return 0.0
        if "," in cleaned:
            if not THOUSANDS_PATTERN.match(cleaned):
                return 0.0
            cleaned = cleaned.replace(",", "")
        value = cleaned

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0

    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def round_half_up(value):
    return int(math.floor(value + 0.5))


def channel_totals(channel):
    """Coerced (subscribers, views, videos) for a channel record, zeros when absent."""
    if channel is None:
        return 0.0, 0.0, 0.0
    return (
        coerce_number(channel.subscribers),
        coerce_number(channel.views),
        coerce_number(channel.videos),
    )


def _safe_ratio(numerator, denominator):
    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator)


def derive_insights(subs, views, vids):
    """Per-video ratios and the composite channel health score."""
    subs = coerce_number(subs)
    views = coerce_number(views)
    vids = coerce_number(vids)

    average_views = _safe_ratio(views, vids)
    subs_per_video = _safe_ratio(subs, vids)

    raw_score = round_half_up(average_views / 1000 + subs_per_video / 50 + vids / 10)
    health_score = max(0, min(HEALTH_SCORE_MAX, raw_score))

    return {
        "average_views_per_video": average_views,
        "subscribers_per_video": subs_per_video,
        "health_score": health_score,
    }


def estimate_earnings(views):
    """Lifetime revenue range for a view count at fixed CPM bounds."""
    thousands = coerce_number(views) / 1000
    return {
        "low": f"{thousands * CPM_LOW:.2f}",
        "high": f"{thousands * CPM_HIGH:.2f}",
    }


def predict_growth(subs):
    """Predicted 30-day subscriber gain, floored so the minimum is never overstated."""
    subs = coerce_number(subs)
    return {
        "min": int(math.floor(subs * GROWTH_MIN_PERCENT / 100)),
        "max": int(math.floor(subs * GROWTH_MAX_PERCENT / 100)),
    }
