import logging
import threading

import analytics_api
from analytics_api import FetchFailure
from schemas import AnalysisSnapshot

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Failed to fetch channel data"


class AnalysisSession:
    """Owns the dashboard state and the single "analyze" action.

    Every analyze call takes a new request id. Only the result of the most
    recently started analysis is published; results that arrive for an older
    request id are discarded, so a channel and a video list from two different
    queries are never combined.
    """

    def __init__(self, fetch_channel=None, fetch_videos=None):
        self._fetch_channel = fetch_channel or analytics_api.fetch_channel
        self._fetch_videos = fetch_videos or analytics_api.fetch_videos
        self._lock = threading.Lock()
        self._latest_request_id = 0
        self._snapshot = AnalysisSnapshot()

    @property
    def snapshot(self):
        with self._lock:
            return self._snapshot

    def set_query(self, query):
        with self._lock:
            self._snapshot = self._snapshot.model_copy(update={"query": query or ""})
            return self._snapshot

    def _begin(self, query):
        with self._lock:
            self._latest_request_id += 1
            request_id = self._latest_request_id
            self._snapshot = AnalysisSnapshot(query=query, loading=True, request_id=request_id)
            return request_id

    def _publish(self, request_id, snapshot):
        with self._lock:
            if request_id != self._latest_request_id:
                logger.info(
                    "Discarding stale result for request %s (latest is %s).",
                    request_id,
                    self._latest_request_id,
                )
                return False
            self._snapshot = snapshot
            return True

    def analyze(self, query=None):
        """Fetch channel and videos for the query and publish the outcome.

        Returns the session snapshot after this call. An empty query makes no
        request and leaves the state as it was.
        """
        if query is None:
            query = self.snapshot.query
        if not query:
            return self.snapshot

        request_id = self._begin(query)
        logger.info("Starting analysis %s for query %r.", request_id, query)

        try:
            channel = self._fetch_channel(query)
            videos = self._fetch_videos(query)
        except FetchFailure as e:
            logger.warning("Analysis %s failed: %s", request_id, e)
            self._publish(
                request_id,
                AnalysisSnapshot(query=query, error=FETCH_ERROR_MESSAGE, request_id=request_id),
            )
            return self.snapshot
        except Exception as e:
            logger.exception("An error occurred: %s", str(e))
            self._publish(
                request_id,
                AnalysisSnapshot(query=query, error=FETCH_ERROR_MESSAGE, request_id=request_id),
            )
            raise

        self._publish(
            request_id,
            AnalysisSnapshot(
                query=query,
                channel=channel,
                videos=tuple(videos or ()),
                request_id=request_id,
            ),
        )
        return self.snapshot
