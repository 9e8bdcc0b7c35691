"""HTTP submission of report documents.

Reports are gzip-compressed and POSTed to ``<base>/plugin/<app name>``.  The
collector answers with a single line of text:

* ``ERR...`` or a ``7``-prefixed line: the report was rejected.
* ``1`` or a line containing :data:`FIRST_UPDATE_PHRASE`: accepted, and it was
  the first accepted update in the collector's current window.
* anything else: accepted.
"""

from __future__ import annotations

import gzip
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

import httpx

from .errors import DeliveryError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://report.mcstats.org"
REPORT_PATH = "/plugin/{name}"
# Protocol revision understood by the collector; sent in the User-Agent.
REVISION = 7
FIRST_UPDATE_PHRASE = "This is your first update this hour"


@dataclass(frozen=True)
class SubmitResult:
    response: str
    first_update: bool


def gzip_document(text: str) -> bytes:
    """Compress *text* as a single-member gzip stream."""
    return gzip.compress(text.encode("utf-8"))


def report_url(base_url: str, app_name: str) -> str:
    if app_name is None:
        raise ValueError("Application name cannot be None")
    return base_url.rstrip("/") + REPORT_PATH.format(name=quote_plus(app_name))


def interpret_response(line: Optional[str], revision: int = REVISION) -> bool:
    """Return ``True`` when *line* acknowledges the first update of the window.

    Raises:
        DeliveryError: the collector returned nothing or rejected the report.
    """
    marker = str(revision)
    if line is None:
        raise DeliveryError("null")
    if line.startswith("ERR"):
        raise DeliveryError(line)
    if line.startswith(marker):
        prefix = marker + ","
        raise DeliveryError(line[len(prefix):] if line.startswith(prefix) else line[len(marker):])
    return line == "1" or FIRST_UPDATE_PHRASE in line


def _first_line(text: str) -> Optional[str]:
    if not text:
        return None
    return text.split("\n", 1)[0].rstrip("\r")


class ReportTransport:
    """Submits report documents to the collector over HTTP.

    Parameters
    ----------
    base_url:
        Scheme and host of the collector.
    revision:
        Protocol revision sent in the ``User-Agent`` header.
    timeout:
        Seconds before a submission is abandoned as a delivery failure.
    bypass_proxy:
        Ignore proxy settings from the environment when ``True``.
    transport:
        Optional ``httpx`` transport, mainly for tests.
    debug:
        Log request sizes before each submission.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        revision: int = REVISION,
        timeout: float = 10.0,
        bypass_proxy: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
        debug: bool = False,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.revision = revision
        self.timeout = timeout
        self.bypass_proxy = bypass_proxy
        self.debug = debug
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=self.timeout,
                trust_env=not self.bypass_proxy,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _headers(self, body: bytes) -> dict[str, str]:
        return {
            "User-Agent": f"MCStats/{self.revision}",
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
            "Content-Length": str(len(body)),
            "Accept": "application/json",
            "Connection": "close",
        }

    def submit(self, app_name: str, document: str) -> SubmitResult:
        """POST *document* for *app_name* and interpret the reply.

        Raises:
            DeliveryError: on network failure, timeout, HTTP error status or
                a rejecting reply.
        """
        url = report_url(self.base_url, app_name)
        body = gzip_document(document)
        if self.debug:
            logger.info(
                "Prepared request for %s uncompressed=%d compressed=%d",
                app_name,
                len(document.encode("utf-8")),
                len(body),
            )
        try:
            res = self._get_client().post(url, content=body, headers=self._headers(body))
        except httpx.HTTPError as exc:
            raise DeliveryError(str(exc) or type(exc).__name__) from exc

        if res.status_code >= 400:
            raise DeliveryError(f"HTTP {res.status_code} from {url}")

        line = _first_line(res.text)
        first_update = interpret_response(line, self.revision)
        return SubmitResult(response=line or "", first_update=first_update)
