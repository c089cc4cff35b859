import os

from flask import (
    Response,
    after_this_request,
    current_app,
    jsonify,
    request,
    send_file,
    stream_with_context,
)

from export import build_xlsx_export_file, stream_snapshot_csv
from ranking import table_videos
from view_model import build_dashboard_view, serialize_video


def _analysis_session():
    return current_app.extensions["analysis_session"]


def _request_query():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    query = payload.get("query")
    if query is None:
        query = request.form.get("query", "")
    return str(query).strip()


def register_routes(app, limiter):
    """Register application routes."""

    @app.route("/api/analyze", methods=["POST"])
    @limiter.limit("30 per minute")
    def analyze():
        query = _request_query()
        if not query:
            return jsonify({"error": "Query is required"}), 400

        snapshot = _analysis_session().analyze(query)
        view = build_dashboard_view(snapshot, chart_scale=request.args.get("chart_scale", "raw"))
        status_code = 502 if snapshot.error else 200
        return jsonify(view), status_code

    @app.route("/api/dashboard")
    def dashboard():
        snapshot = _analysis_session().snapshot
        return jsonify(
            build_dashboard_view(
                snapshot,
                chart_scale=request.args.get("chart_scale", "raw"),
                sort_column=request.args.get("sort_column"),
                sort_direction=request.args.get("sort_direction", "desc"),
            )
        )

    @app.route("/api/videos")
    def videos():
        snapshot = _analysis_session().snapshot
        sort_column = request.args.get("sort_column")
        sort_direction = request.args.get("sort_direction", "desc")
        limit = request.args.get("limit")

        listing_kwargs = {"sort_column": sort_column, "sort_direction": sort_direction}
        if limit is not None:
            listing_kwargs["limit"] = limit

        items = [serialize_video(video) for video in table_videos(snapshot.videos, **listing_kwargs)]
        return jsonify(
            {
                "query": snapshot.query,
                "items": items,
                "total_videos": len(snapshot.videos),
            }
        )

    @app.route("/export", methods=["GET"])
    def export_data_route():
        export_format = request.args.get("format", "csv").lower()
        snapshot = _analysis_session().snapshot

        if export_format not in ("csv", "xlsx"):
            return "Invalid format! Please choose 'csv' or 'xlsx'.", 400

        if snapshot.channel is None:
            return jsonify({"error": "Nothing has been analyzed yet"}), 404

        if export_format == "csv":
            return Response(
                stream_with_context(stream_snapshot_csv(snapshot)),
                mimetype="text/csv",
                headers={"Content-Disposition": "attachment; filename=channel_analysis.csv"},
            )

        file_path = build_xlsx_export_file(snapshot)

        @after_this_request
        def cleanup(response):
            try:
                os.remove(file_path)
            except OSError:
                pass
            return response

        return send_file(
            file_path,
            as_attachment=True,
            download_name="channel_analysis.xlsx",
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
