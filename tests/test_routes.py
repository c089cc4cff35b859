import gc
import io

import pytest
from openpyxl import load_workbook

from analysis import AnalysisSession
from analytics_api import FetchFailure
from app import create_app
from schemas import ChannelRecord, VideoRecord


class FakeBackend:
    def __init__(self):
        self.fail = False
        self.calls = []

    def fetch_channel(self, query):
        self.calls.append(("channel", query))
        if self.fail:
            raise FetchFailure("backend unavailable")
        return ChannelRecord(
            title="Test Channel",
            description="Channel description",
            thumbnail="https://img.example/c.jpg",
            subscribers="1000",
            views=200000,
            videos=10,
        )

    def fetch_videos(self, query):
        self.calls.append(("videos", query))
        return [
            VideoRecord(videoId="low", title="Low", views=10, publishedAt="2024-05-01T10:00:00Z"),
            VideoRecord(videoId="high", title="High", views="5,000", likes=50),
            VideoRecord(videoId="mid", title="Mid", views=300),
        ]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    session = AnalysisSession(fetch_channel=backend.fetch_channel, fetch_videos=backend.fetch_videos)
    app = create_app({"TESTING": True, "RATELIMIT_ENABLED": False, "ANALYSIS_SESSION": session})

    with app.test_client() as test_client:
        yield test_client


def test_dashboard_is_idle_before_analysis(client):
    response = client.get("/api/dashboard")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "idle"
    assert payload["channel"] is None


def test_analyze_requires_query(client, backend):
    response = client.post("/api/analyze", json={"query": "   "})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Query is required"}
    assert backend.calls == []


def test_analyze_returns_dashboard_view(client, backend):
    response = client.post("/api/analyze", json={"query": "@test"})

    assert response.status_code == 200
    payload = response.get_json()
    assert backend.calls == [("channel", "@test"), ("videos", "@test")]
    assert payload["status"] == "ready"
    assert payload["channel"]["title"] == "Test Channel"
    assert payload["insights"]["average_views_per_video"] == 20000
    assert payload["insights"]["subscribers_per_video"] == 100
    assert payload["insights"]["health_score"] == 23
    assert payload["earnings"] == {"low": "100.00", "high": "1000.00"}
    assert payload["growth"] == {"min": 10, "max": 30}
    assert [video["video_id"] for video in payload["top_videos"]] == ["high", "mid", "low"]


def test_analyze_accepts_form_data(client):
    response = client.post("/api/analyze", data={"query": "@form"})

    assert response.status_code == 200
    assert response.get_json()["query"] == "@form"


def test_analyze_failure_returns_error_view(client, backend):
    backend.fail = True

    response = client.post("/api/analyze", json={"query": "@missing"})

    assert response.status_code == 502
    payload = response.get_json()
    assert payload["status"] == "error"
    assert payload["error"] == "Failed to fetch channel data"
    assert payload["channel"] is None
    assert payload["top_videos"] == []


def test_dashboard_chart_scale(client):
    client.post("/api/analyze", json={"query": "@test"})

    response = client.get("/api/dashboard?chart_scale=ratio")

    chart = response.get_json()["chart"]
    assert chart["scale"] == "ratio"
    assert chart["datasets"][0]["data"][:2] == [0.005, 1.0]


def test_videos_listing_sorting(client):
    client.post("/api/analyze", json={"query": "@test"})

    default_order = client.get("/api/videos").get_json()
    sorted_order = client.get("/api/videos?sort_column=views&sort_direction=asc&limit=2").get_json()

    assert [item["video_id"] for item in default_order["items"]] == ["low", "high", "mid"]
    assert default_order["items"][0]["published"] == "2024-05-01"
    assert default_order["total_videos"] == 3
    assert [item["video_id"] for item in sorted_order["items"]] == ["low", "mid"]


def test_export_requires_analysis(client):
    response = client.get("/export?format=csv")

    assert response.status_code == 404


def test_export_invalid_format(client):
    response = client.get("/export?format=pdf")

    assert response.status_code == 400


def test_export_csv_success(client):
    client.post("/api/analyze", json={"query": "@test"})

    response = client.get("/export?format=csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    body = response.get_data(as_text=True)
    assert "=== CHANNEL ===" in body
    assert "=== VIDEOS ===" in body
    assert "health_score,23" in body
    assert "https://youtube.com/watch?v=high" in body


def test_export_xlsx_success(client):
    client.post("/api/analyze", json={"query": "@test"})

    response = client.get("/export?format=xlsx")

    assert response.status_code == 200
    assert (
        response.mimetype
        == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )

    workbook = load_workbook(io.BytesIO(response.data), read_only=True)
    try:
        assert set(workbook.sheetnames) == {"channel", "videos"}
        rows = list(workbook["videos"].iter_rows(values_only=True))
        assert rows[0] == ("video_id", "title", "url", "views", "likes", "comments", "published")
        assert [row[0] for row in rows[1:]] == ["low", "high", "mid"]
    finally:
        workbook.close()


def test_rate_limited_route_survives_garbage_collection(client):
    gc.collect()

    response = client.post("/api/analyze", json={"query": "@test"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "ready"


@pytest.mark.parametrize("body", [["@x"], "@x", 42])
def test_analyze_non_object_json_requires_query(client, backend, body):
    response = client.post("/api/analyze", json=body)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Query is required"}
    assert backend.calls == []
