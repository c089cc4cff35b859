import math

from metrics import coerce_number

CHART_LABELS = ("Subscribers", "Views", "Videos")
CHART_COLORS = ("#ef4444", "#3b82f6", "#22c55e")
CHART_DATASET_LABEL = "Channel Totals"
CHART_SCALES = ("raw", "log", "ratio")


def normalize_chart_scale(value):
    value = str(value or "").lower()
    return value if value in CHART_SCALES else "raw"


def _scale_values(values, scale):
    if scale == "log":
        return [round(math.log10(value + 1), 2) for value in values]
    if scale == "ratio":
        peak = max(values)
        return [round(value / peak, 4) for value in values]
    return [int(value) if value.is_integer() else value for value in values]


def build_chart_data(subs, views, vids, scale="raw"):
    """Bar chart dataset for the three channel totals.

    Returns None when every total is zero, whatever the scale.
    """
    values = [coerce_number(subs), coerce_number(views), coerce_number(vids)]
    if not any(values):
        return None

    scale = normalize_chart_scale(scale)
    return {
        "scale": scale,
        "labels": list(CHART_LABELS),
        "datasets": [
            {
                "label": CHART_DATASET_LABEL,
                "data": _scale_values(values, scale),
                "backgroundColor": list(CHART_COLORS),
            }
        ],
    }
