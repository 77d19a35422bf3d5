"""Client for the ListStor dataset store used by ``dataset pull``."""

from __future__ import annotations

import io
import json
import logging
import zipfile
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from refwire.api_client import DEFAULT_TIMEOUT, is_local_dev
from refwire.errors import StoreError

logger = logging.getLogger(__name__)

DATA_ENTRY = "data.json"
META_ENTRY = "data.meta.json"


def store_base_url(store_url: str) -> str:
    """Prefix ``https://`` when the configured store URL has no scheme."""
    store_url = store_url.rstrip("/")
    if store_url.startswith("http"):
        return store_url
    return f"https://{store_url}"


@dataclass(frozen=True)
class StorePackage:
    """A downloaded package: raw ``data.json`` text and parsed metadata."""

    data: str
    meta: dict[str, Any]

    def meta_value(self, key: str) -> str | None:
        value = self.meta.get(key)
        if value is None or value == "":
            return None
        return str(value)


class StoreClient:
    def __init__(
        self,
        store_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = store_base_url(store_url)
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            verify=not is_local_dev(self.base_url),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> StoreClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        logger.debug("GET %s%s params=%s", self.base_url, path, params)
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise StoreError(str(e) or type(e).__name__, details={"endpoint": path}) from e
        if response.is_error:
            raise StoreError(
                f"{response.status_code} {response.reason_phrase}",
                details={"endpoint": path, "status": response.status_code},
            )
        return response

    def get_dataset(self, dataset_id: str, version: str | None = None) -> StorePackage:
        """Download and unpack a dataset package."""
        params = {"version": version} if version else None
        response = self._get(f"/packages/{quote(dataset_id, safe='')}", params=params)

        content_type = response.headers.get("content-type", "")
        logger.debug("Package content-type: %s", content_type)
        if "application/zip" not in content_type:
            raise StoreError(f"Unexpected content-type: {content_type or '(none)'}")

        return unpack_package(response.content)


def unpack_package(content: bytes) -> StorePackage:
    """Extract ``data.json`` and ``data.meta.json`` from a package zip."""
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = set(archive.namelist())
            if DATA_ENTRY not in names or META_ENTRY not in names:
                raise StoreError(f"Zip is missing {DATA_ENTRY} or {META_ENTRY}", details={"entries": sorted(names)})
            data = archive.read(DATA_ENTRY).decode("utf-8")
            meta_text = archive.read(META_ENTRY).decode("utf-8")
    except zipfile.BadZipFile as e:
        raise StoreError("package is not a valid zip archive") from e
    except UnicodeDecodeError as e:
        raise StoreError("package entries are not UTF-8 text") from e

    try:
        meta = json.loads(meta_text)
    except json.JSONDecodeError as e:
        raise StoreError(f"{META_ENTRY} is not valid JSON: {e.msg}") from e
    if not isinstance(meta, dict):
        raise StoreError(f"{META_ENTRY} must contain a JSON object")

    logger.debug("Extracted package with metadata keys: %s", sorted(meta))
    return StorePackage(data=data, meta=meta)
