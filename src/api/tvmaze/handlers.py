"""
Firebase HTTPS handler for the recent-episodes add-on.

One function serves the whole add-on; query parameters pick the document:

    GET /api?manifest                      -> manifest
    GET /api?catalog=recent&type=series    -> {"metas": [...]}
    GET /api?id=tvmaze:82&type=series      -> {"meta": {...}}
    GET /api                               -> {"status": "ok"}

The client expects every answer to be a 200 with valid JSON, so failures are
answered with an empty document of the requested kind.
"""

import json
from typing import Any

from firebase_functions import https_fn

from api.tvmaze.manifest import CATALOG_ID
from api.tvmaze.wrappers import TVMazeAddonWrapper, tvmaze_wrapper
from contracts.models import CatalogResponse, ContentType, MetaResponse, StatusResponse
from utils.async_runner import run_async
from utils.get_logger import get_logger

logger = get_logger(__name__)

ROUTE_MANIFEST = "manifest"
ROUTE_CATALOG = "catalog"
ROUTE_META = "meta"
ROUTE_STATUS = "status"

EMPTY_DOCUMENTS: dict[str, dict[str, Any]] = {
    ROUTE_MANIFEST: {},
    ROUTE_CATALOG: {"metas": []},
    ROUTE_META: {"meta": {}},
    ROUTE_STATUS: {"status": "ok"},
}


def select_route(params: Any) -> str:
    """Pick the document kind from the query parameters."""
    if "manifest" in params:
        return ROUTE_MANIFEST
    content_type = params.get("type")
    if params.get("catalog") == CATALOG_ID and content_type == ContentType.SERIES.value:
        return ROUTE_CATALOG
    if params.get("id") and content_type == ContentType.SERIES.value:
        return ROUTE_META
    return ROUTE_STATUS


class TVMazeAddonHandler:
    """HTTP handler entrypoint for the add-on."""

    def __init__(self, wrapper: TVMazeAddonWrapper | None = None):
        self.wrapper = wrapper or tvmaze_wrapper
        logger.info("TVMazeAddonHandler initialized")

    def handle(self, req: https_fn.Request) -> https_fn.Response:
        headers = self._cors_headers()
        if req.method == "OPTIONS":
            return https_fn.Response("", status=200, headers=headers)

        params: Any = req.args or {}
        route = select_route(params)
        try:
            if route == ROUTE_MANIFEST:
                host = req.headers.get("Host") if req.headers else None
                body = self.wrapper.get_manifest(host).to_dict()
            elif route == ROUTE_CATALOG:
                body = self._catalog(params)
            elif route == ROUTE_META:
                body = self._meta(params)
            else:
                body = StatusResponse().to_dict()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Unexpected error serving {route}: {exc}", exc_info=True)
            body = EMPTY_DOCUMENTS[route]

        return https_fn.Response(json.dumps(body, default=str), status=200, headers=headers)

    def _catalog(self, params: Any) -> dict[str, Any]:
        response = run_async(
            self.wrapper.get_catalog(
                catalog_id=params.get("catalog"), content_type=params.get("type")
            )
        )
        if response is None or response.error:
            logger.error(f"Catalog error: {response.error if response else 'no response'}")
            return EMPTY_DOCUMENTS[ROUTE_CATALOG]

        logger.info(f"Catalog returning {len(response.metas)} shows (cached={response.from_cache})")
        return CatalogResponse(metas=response.metas).to_dict()

    def _meta(self, params: Any) -> dict[str, Any]:
        item_id = params.get("id")
        response = run_async(self.wrapper.get_meta(item_id, content_type=params.get("type")))
        if response is None or response.error or response.meta is None:
            reason = response.error if response else "no response"
            logger.warning(f"Meta error for {item_id}: {reason}")
            return EMPTY_DOCUMENTS[ROUTE_META]

        return MetaResponse(meta=response.meta).to_dict()

    def _cors_headers(self) -> dict[str, Any]:
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET,OPTIONS",
            "Access-Control-Allow-Headers": "*",
            "Content-Type": "application/json",
        }


tvmaze_handler = TVMazeAddonHandler()
