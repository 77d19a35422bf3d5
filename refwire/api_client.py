"""HTTP client for the RefWire admin API."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from refwire.config import Credentials
from refwire.errors import ApiError, AuthError, NotFoundError, Suggestion
from refwire.exit_codes import ExitCode

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0

_LOCAL_DEV = re.compile(r"^https://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?")


def is_local_dev(url: str) -> bool:
    """True for HTTPS URLs pointing at the local machine."""
    return _LOCAL_DEV.match(url) is not None


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _error_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def error_from_response(method: str, url: str, response: httpx.Response) -> Exception:
    """Map an HTTP error response to a refwire error."""
    status = response.status_code
    details = {
        "endpoint": f"{method} {url}",
        "status": status,
        "response": _error_details(response),
    }
    if status in (401, 403):
        return AuthError(
            message=f"API Error: {status} {response.reason_phrase}. The API key was rejected.",
            code=f"E2{status}",
            suggestion=Suggestion(
                action="check the API key",
                fix="Run 'refwire auth login' with a valid key or set LISTSERV_API_KEY.",
            ),
            details=details,
        )
    if status == 404:
        return NotFoundError(message=f"API Error: 404 Not Found ({method} {url})", details=details)
    return ApiError(
        message=f"API Error: {status} {response.reason_phrase}",
        code=f"E4{status}",
        is_retryable=status >= 500,
        details=details,
    )


class AdminClient:
    """Thin wrapper over the ``/admin`` endpoints.

    Each method returns the decoded JSON body, or ``None`` for empty replies.
    """

    def __init__(
        self,
        server_url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.base_url = f"{self.server_url}/admin"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Content-Type": "application/json", "X-Api-Key": api_key},
            timeout=timeout,
            verify=not is_local_dev(self.server_url),
            transport=transport,
        )

    @classmethod
    def from_credentials(cls, credentials: Credentials, **kwargs: Any) -> AdminClient:
        return cls(credentials.server_url or "", credentials.api_key or "", **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AdminClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise ApiError(
                message=f"API Error: request timed out ({method} {path})",
                code="E4001",
                is_retryable=True,
                details={"endpoint": f"{method} {path}"},
                exit_code=ExitCode.TIMEOUT_EXPIRED,
            ) from e
        except httpx.ConnectError as e:
            raise ApiError(
                message=f"API Error: Connection refused. Is the server running at {self.base_url}?",
                code="E4002",
                is_retryable=True,
                suggestion=Suggestion(
                    action="check the server URL",
                    fix="Check server URL and network connectivity.",
                ),
                details={"endpoint": f"{method} {path}", "reason": str(e)},
            ) from e
        except httpx.HTTPError as e:
            raise ApiError(
                message=f"API Error: No response received from server ({self.base_url}{path})",
                code="E4003",
                details={"endpoint": f"{method} {path}", "reason": str(e)},
            ) from e

        logger.debug("%s %s -> %d", method, path, response.status_code)
        if response.is_error:
            raise error_from_response(method, path, response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # API keys

    def create_api_key(self, name: str, description: str | None, scopes: list[str]) -> Any:
        return self._request("POST", "/api-keys/", json={"name": name, "description": description, "scopes": scopes})

    def list_api_keys(self) -> Any:
        return self._request("GET", "/api-keys/")

    def get_api_key(self, key_id: str) -> Any:
        return self._request("GET", f"/api-keys/{_segment(key_id)}")

    def update_api_key(self, key_id: str, name: str | None, description: str | None, scopes: list[str]) -> Any:
        return self._request(
            "PUT",
            f"/api-keys/{_segment(key_id)}",
            json={"name": name, "description": description, "scopes": scopes},
        )

    def revoke_api_key(self, key_id: str) -> None:
        self._request("DELETE", f"/api-keys/{_segment(key_id)}")

    # Health and instances

    def get_health_report(self) -> Any:
        return self._request("GET", "/health/")

    def list_instances(self) -> Any:
        return self._request("GET", "/instances/")

    def remove_instance(self, instance_id: str) -> None:
        self._request("DELETE", f"/instances/{_segment(instance_id)}")

    # Datasets

    def list_dataset_ids(self) -> Any:
        return self._request("GET", "/datasets/list")

    def get_dataset_meta(self, dataset_id: str) -> Any:
        return self._request("GET", f"/datasets/{_segment(dataset_id)}/meta")

    def get_dataset_api(self, dataset_id: str) -> Any:
        return self._request("GET", f"/datasets/{_segment(dataset_id)}/api/spec")

    def get_system_state(self) -> Any:
        return self._request("GET", "/datasets/state")

    def create_dataset(
        self,
        dataset_id: str,
        name: str,
        description: str,
        id_field: str,
        name_field: str,
        fields: list[dict[str, Any]],
        items: dict[str, Any],
    ) -> Any:
        return self._request(
            "POST",
            "/datasets/",
            json={
                "id": dataset_id,
                "name": name,
                "description": description,
                "idField": id_field,
                "nameField": name_field,
                "fields": fields,
                "items": items,
            },
        )

    def update_dataset(self, dataset_id: str, name: str, fields: list[dict[str, Any]]) -> Any:
        return self._request("PUT", f"/datasets/{_segment(dataset_id)}", json={"name": name, "fields": fields})

    def delete_dataset(self, dataset_id: str) -> Any:
        return self._request("DELETE", f"/datasets/{_segment(dataset_id)}")

    # Items

    def add_item(self, dataset_id: str, item_id: str, name: str, data: Any) -> Any:
        return self._request(
            "POST",
            f"/datasets/{_segment(dataset_id)}/items",
            json={"id": item_id, "name": name, "data": data},
        )

    def add_items_bulk(self, dataset_id: str, items: list[Any]) -> Any:
        return self._request("POST", f"/datasets/{_segment(dataset_id)}/items/bulk", json={"items": items})

    def update_item(self, dataset_id: str, item_id: str, name: str | None, data: Any) -> Any:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if data is not None:
            body["data"] = data
        return self._request("PUT", f"/datasets/{_segment(dataset_id)}/items/{_segment(item_id)}", json=body)

    def archive_item(self, dataset_id: str, item_id: str) -> None:
        self._request("DELETE", f"/datasets/{_segment(dataset_id)}/items/{_segment(item_id)}", json={})
