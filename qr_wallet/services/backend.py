"""HTTP client for the managed backend.

Two surfaces are covered:

- callable functions: ``POST <functions_url>/<name>`` with ``{"data": ...}``;
  the reply is ``{"result": ...}`` or ``{"error": {"status", "message",
  "details"}}``.
- the document store REST API, whose documents encode every field as a
  typed value (``{"stringValue": "NGN"}``, ``{"integerValue": "5"}``...).
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.errors import AppException, ErrorCode
from ..schemas.base import parse_timestamp

logger = logging.getLogger(__name__)

SERVER_TIMESTAMP = object()


# ------------------------------------------------------------
# document value codec
# ------------------------------------------------------------

def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if value is SERVER_TIMESTAMP:
        return {"timestampValue": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {k: encode_value(v) for k, v in value.items()}}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def decode_value(value: Dict[str, Any]) -> Any:
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "referenceValue" in value:
        return value["referenceValue"]
    logger.warning(f"Unsupported document value type: {list(value)}")
    return None


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in data.items()}


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def decode_document(document: Dict[str, Any]) -> Dict[str, Any]:
    data = decode_fields(document.get("fields", {}))
    # document id is the last path segment of ``name``
    data.setdefault("id", document.get("name", "").rsplit("/", 1)[-1])
    return data


# ------------------------------------------------------------
# client
# ------------------------------------------------------------

def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, AppException) and exc.code == ErrorCode.SERVICE_UNAVAILABLE


class BackendClient:
    """Holds the HTTP session and the signed-in user's credentials."""

    def __init__(self, settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.user_id: Optional[str] = None
        self.id_token: Optional[str] = None
        # installed by AuthService; returns True once a fresh ID token is set
        self.token_refresher: Optional[Callable[[], bool]] = None

    def set_credentials(self, user_id: Optional[str], id_token: Optional[str]) -> None:
        self.user_id = user_id
        self.id_token = id_token

    def clear_credentials(self) -> None:
        self.set_credentials(None, None)

    @property
    def is_signed_in(self) -> bool:
        return self.user_id is not None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.id_token:
            headers["Authorization"] = f"Bearer {self.id_token}"
        return headers

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(
                method, url, headers=self._headers(), timeout=self.settings.http_timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise AppException(
                ErrorCode.SERVICE_UNAVAILABLE, f"Network error: {e}", retryable=True
            ) from e

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        response = self._send(method, url, **kwargs)
        if response.status_code != 401 or not self.id_token or self.token_refresher is None:
            return response
        logger.info(f"{method} {url} returned 401, refreshing ID token")
        if not self.token_refresher():
            return response
        return self._send(method, url, **kwargs)

    # ------------------------------------------------------------
    # callable functions
    # ------------------------------------------------------------

    def call_function(self, name: str, data: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.settings.functions_url}/{name}"
        response = self._request("POST", url, json={"data": data or {}})
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and "error" in body:
            error = AppException.from_callable_error(body["error"])
            logger.error(f"Callable {name} failed: {error}")
            raise error
        if response.status_code >= 500:
            raise AppException(ErrorCode.SERVICE_UNAVAILABLE, f"{name} returned {response.status_code}")
        if response.status_code >= 400:
            raise AppException(ErrorCode.SYSTEM_INTERNAL_ERROR, f"{name} returned {response.status_code}")
        return body.get("result") if isinstance(body, dict) else None

    # ------------------------------------------------------------
    # documents
    # ------------------------------------------------------------

    def _raise_for_document_error(self, response: requests.Response, path: str) -> None:
        if response.status_code < 400:
            return
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        status = error.get("status", "")
        message = error.get("message") or f"{path}: HTTP {response.status_code}"
        if response.status_code >= 500:
            raise AppException(ErrorCode.SERVICE_UNAVAILABLE, message, status=status)
        if response.status_code in (401, 403):
            raise AppException(ErrorCode.AUTH_PERMISSION_DENIED, message, status=status)
        raise AppException(ErrorCode.SYSTEM_INTERNAL_ERROR, message, status=status)

    def _read_retry(self):
        return retry(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.settings.read_retries + 1),
            wait=wait_exponential(multiplier=0.5, max=2),
            reraise=True,
        )

    def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        """Fetch one document; ``None`` when it does not exist."""

        @self._read_retry()
        def fetch():
            response = self._request("GET", f"{self.settings.firestore_url}/{path}")
            if response.status_code == 404:
                return None
            self._raise_for_document_error(response, path)
            return decode_document(response.json())

        return fetch()

    def query_collection(
        self,
        parent: str,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        filters: Sequence[Tuple[str, Any]] = (),
    ) -> List[Dict[str, Any]]:
        """Run an equality-filtered, ordered query over ``parent/collection``."""
        query: Dict[str, Any] = {"from": [{"collectionId": collection}]}
        field_filters = [
            {"fieldFilter": {"field": {"fieldPath": f}, "op": "EQUAL", "value": encode_value(v)}}
            for f, v in filters
        ]
        if len(field_filters) == 1:
            query["where"] = field_filters[0]
        elif field_filters:
            query["where"] = {"compositeFilter": {"op": "AND", "filters": field_filters}}
        if order_by:
            query["orderBy"] = [
                {"field": {"fieldPath": order_by}, "direction": "DESCENDING" if descending else "ASCENDING"}
            ]
        if limit:
            query["limit"] = limit

        base = self.settings.firestore_url
        url = f"{base}/{parent}:runQuery" if parent else f"{base}:runQuery"

        @self._read_retry()
        def run():
            response = self._request("POST", url, json={"structuredQuery": query})
            self._raise_for_document_error(response, f"{parent}/{collection}")
            return [decode_document(row["document"]) for row in response.json() if "document" in row]

        return run()

    def set_document(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Create or overwrite; with ``merge`` only the given fields are replaced."""
        params = [("updateMask.fieldPaths", name) for name in data] if merge else None
        response = self._request(
            "PATCH", f"{self.settings.firestore_url}/{path}", params=params, json={"fields": encode_fields(data)}
        )
        self._raise_for_document_error(response, path)

    def update_document(self, path: str, fields: Dict[str, Any]) -> None:
        """Patch only ``fields``; fails when the document does not exist."""
        params = [("updateMask.fieldPaths", name) for name in fields]
        params.append(("currentDocument.exists", "true"))
        response = self._request(
            "PATCH",
            f"{self.settings.firestore_url}/{path}",
            params=params,
            json={"fields": encode_fields(fields)},
        )
        if response.status_code == 404:
            raise AppException(ErrorCode.UNKNOWN, f"Document {path} not found", status="not-found")
        self._raise_for_document_error(response, path)

    def delete_document(self, path: str) -> None:
        response = self._request("DELETE", f"{self.settings.firestore_url}/{path}")
        if response.status_code == 404:
            return
        self._raise_for_document_error(response, path)
