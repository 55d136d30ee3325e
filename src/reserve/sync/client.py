"""HTTP adapter for the shared JSON document (JSONBin v3 protocol).

Two calls against one bin:

- ``GET  {base}/b/{bin_id}/latest`` returns ``{"record": <document>, ...}``
- ``PUT  {base}/b/{bin_id}`` replaces the whole document

Both authenticate with the static ``X-Master-Key`` header.  Any failure is
raised as :class:`TransportError`; nothing here retries.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from reserve.core.models import CloudConfig, RemoteDocument
from reserve.sync.config import base_url, transport_timeout
from reserve.sync.errors import TransportError

logger = logging.getLogger(__name__)


class RemoteClient(Protocol):
    def fetch(self) -> RemoteDocument: ...

    def push(self, document: RemoteDocument) -> None: ...


class JsonBinClient:
    """Read and replace one bin."""

    def __init__(
        self,
        api_key: str,
        bin_id: str,
        *,
        base: str | None = None,
        timeout: float | None = None,
        opener: Callable[..., Any] = urlopen,
    ) -> None:
        self.api_key = api_key
        self.bin_id = bin_id
        self.base = (base or base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else transport_timeout()
        self._open = opener

    @classmethod
    def from_config(cls, config: CloudConfig) -> JsonBinClient:
        return cls(config["apiKey"].strip(), config["binId"].strip())

    @property
    def bin_url(self) -> str:
        return f"{self.base}/b/{self.bin_id}"

    def fetch(self) -> RemoteDocument:
        """Return the latest stored document.

        Raises:
            TransportError: On network failure, a non-2xx status, or a body
                that is not a JSON object wrapping the document under
                ``record``.
        """
        req = Request(
            f"{self.bin_url}/latest",
            headers={"X-Master-Key": self.api_key, "Accept": "application/json"},
            method="GET",
        )
        payload = self._send(req, "fetch")
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TransportError(f"fetch: response is not JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("record"), dict):
            raise TransportError("fetch: response has no 'record' document")
        return data["record"]

    def push(self, document: RemoteDocument) -> None:
        """Replace the stored document in full.

        Raises:
            TransportError: On network failure or a non-2xx status.
        """
        body = json.dumps(document, ensure_ascii=False).encode("utf-8")
        req = Request(
            self.bin_url,
            data=body,
            headers={
                "X-Master-Key": self.api_key,
                "Content-Type": "application/json",
            },
            method="PUT",
        )
        self._send(req, "push")

    def _send(self, req: Request, op: str) -> bytes:
        logger.debug("reserve sync: %s %s", req.get_method(), req.full_url)
        try:
            with self._open(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                body = resp.read()
        except HTTPError as exc:
            raise TransportError(
                f"{op}: HTTP {exc.code} {exc.reason}", status=exc.code
            ) from exc
        except URLError as exc:
            raise TransportError(f"{op}: {exc.reason}") from exc
        except (OSError, ValueError) as exc:
            raise TransportError(f"{op}: {exc}") from exc

        if not 200 <= status < 300:
            raise TransportError(f"{op}: HTTP {status}", status=status)
        return body
