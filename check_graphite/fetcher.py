"""HTTP retrieval of Graphite render data."""
import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

from check_graphite.config import CheckConfig, DEFAULT_TIMEOUT
from check_graphite.decoder import read_csv
from check_graphite.errors import NetworkError, StreamError
from check_graphite.series import DataPoint

logger = logging.getLogger(__name__)

USER_AGENT = "VGT MnM GraphiteChecker/1.0"
URL_TEMPLATE = "%s://%s:%d/render?target=%s&format=csv&from=-%s"


def build_url(config: CheckConfig) -> str:
    """Render endpoint URL for the configured metric and period."""
    return URL_TEMPLATE % (
        config.protocol, config.hostname, config.port,
        config.metric_path, config.time_period,
    )


@dataclass
class FetchResult:
    """Outcome of one fetch: the point set, or the error that stopped it."""
    points: List[DataPoint] = field(default_factory=list)
    response_time: float = 0.0
    error: Optional[Exception] = None


class CancellableAdapter(HTTPAdapter):
    """
    HTTPAdapter that remembers the connections it opens, so another thread
    can tear them down while a request is still waiting on the socket.
    """

    def __init__(self, *args, **kwargs):
        self._connections = []
        self._conn_lock = threading.Lock()
        super().__init__(*args, **kwargs)

    def init_poolmanager(self, *args, **kwargs):
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": self._tracking_pool(HTTPConnectionPool),
            "https": self._tracking_pool(HTTPSConnectionPool),
        }

    def _tracking_pool(self, pool_cls):
        adapter = self

        class TrackingPool(pool_cls):
            def _new_conn(self):
                conn = super()._new_conn()
                adapter._track(conn)
                return conn

        return TrackingPool

    def _track(self, conn):
        with self._conn_lock:
            self._connections.append(conn)

    def abort(self):
        """Shut down every socket this adapter opened, unblocking pending reads."""
        with self._conn_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            sock = getattr(conn, "sock", None)
            if sock is not None:
                try:
                    sock.shutdown(socket.SHUT_RDWR)
                except OSError as e:
                    # already closed by the peer or by the fetch thread
                    logger.debug(f"Socket shutdown failed: {e}")
            conn.close()


class GraphiteFetcher:
    """Performs the single render request of a run and decodes its body."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, self_metrics=None, session=None):
        self.timeout = timeout
        self.self_metrics = self_metrics
        self._adapter = None
        if session is None:
            session = requests.Session()
            self._adapter = CancellableAdapter()
            session.mount("http://", self._adapter)
            session.mount("https://", self._adapter)
        self.session = session
        self._response = None
        self._lock = threading.Lock()

    def _get(self, url: str):
        """Issue the GET request, returning the streamed response."""
        headers = {
            "User-Agent": USER_AGENT,
            # one request per run, don't leave the connection open
            "Connection": "close",
        }
        verify = True
        if url.startswith("https"):
            # no TLS peer verification for https targets
            verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        try:
            response = self.session.get(
                url,
                headers=headers,
                verify=verify,
                stream=True,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

        with self._lock:
            self._response = response
        return response

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch url and reduce its CSV body to one point per path.

        Errors are returned in the result, never raised.
        """
        result = FetchResult()
        logger.debug(f"URL: {url}")

        t_start = time.monotonic()
        try:
            response = self._get(url)
        except NetworkError as e:
            result.response_time = time.monotonic() - t_start
            logger.info(f"Request to Graphite failed: {e}")
            result.error = e
            return result
        result.response_time = time.monotonic() - t_start

        if self.self_metrics:
            self.self_metrics.record_fetch_duration(result.response_time)

        try:
            with response:
                # Graphite sends text/csv without a charset, which requests
                # would otherwise decode as ISO-8859-1
                if "charset" not in response.headers.get("Content-Type", "").lower():
                    response.encoding = "utf-8"
                result.points = read_csv(
                    response.iter_lines(decode_unicode=True),
                    self.self_metrics
                )
        except StreamError as e:
            logger.info(f"Failed reading Graphite response: {e}")
            result.error = e
        except requests.RequestException as e:
            logger.info(f"Connection lost while reading Graphite response: {e}")
            result.error = NetworkError(str(e))
        finally:
            with self._lock:
                self._response = None

        logger.debug(
            f"Fetched {len(result.points)} unique metrics in {result.response_time:.3f}s"
        )
        return result

    def cancel(self):
        """Abort the in-flight request, if any."""
        with self._lock:
            response = self._response
            self._response = None
        if self._adapter is not None:
            self._adapter.abort()
        if response is not None:
            response.close()
        self.session.close()
        logger.debug("Fetch cancelled")
