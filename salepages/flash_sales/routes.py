from __future__ import annotations

import logging
import time
from typing import Optional

from flask import Blueprint, Response, current_app, jsonify, session

from ..errors import PageCacheError
from .page_cache import PageCacheController


logger = logging.getLogger(__name__)

flash_bp = Blueprint("goods", __name__, url_prefix="/goods")


def _controller() -> PageCacheController:
    return current_app.extensions["page_cache"]


def _current_user() -> Optional[dict]:
    """Viewer resolved from the session; None for anonymous requests"""
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return current_app.extensions["user_repo"].get_user(user_id)


def _deadline() -> Optional[float]:
    timeout = current_app.config.get("PAGE_REQUEST_TIMEOUT_SECONDS")
    if not timeout:
        return None
    return time.monotonic() + float(timeout)


@flash_bp.get("/to_list")
def to_list():
    html = _controller().get_listing({}, deadline=_deadline())
    return Response(html, mimetype="text/html")


@flash_bp.get("/to_detail/<int:goods_id>")
def to_detail(goods_id: int):
    html = _controller().get_detail(goods_id, {}, deadline=_deadline())
    return Response(html, mimetype="text/html")


@flash_bp.get("/to_detail_static/<int:goods_id>")
def to_detail_static(goods_id: int):
    """Detail data as JSON for clients that render the page themselves"""
    detail = _controller().get_detail_structured(goods_id, _current_user())
    return jsonify({"code": 0, "msg": "success", "data": detail.to_dict()})


# JSON error handler: return consistent JSON with {error, details}
@flash_bp.errorhandler(PageCacheError)
def page_cache_error_handler(err: PageCacheError):
    code = err.http_status
    if code >= 500:
        logger.error("Page request failed", extra={"error": type(err).__name__, "details": str(err)})
    payload = {"error": type(err).__name__, "details": str(err)}
    return jsonify(payload), code
