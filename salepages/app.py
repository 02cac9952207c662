from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from flask import Flask, jsonify, redirect, url_for

from .dao import GoodsRepo, UserRepo
from .flash_sales import PageCacheController, RedisCache, SimpleCache, TemplateRenderer, flash_bp
from .flash_sales.cache import CacheStore
from .main import init_db
from .observability import configure_logging, instrument_app, metrics_endpoint


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def _build_cache(config: Mapping[str, Any]) -> CacheStore:
    store = config.get("PAGE_CACHE_STORE")
    if store is not None:
        return store
    if config.get("REDIS_URL"):
        return RedisCache(config["REDIS_URL"], default_ttl=config.get("PAGE_CACHE_TTL_SECONDS"))
    return SimpleCache(default_ttl=config.get("PAGE_CACHE_TTL_SECONDS") or 60)


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__, template_folder="templates")
    app.secret_key = os.environ.get("APP_SECRET_KEY", "dev-insecure-secret")

    root = Path(__file__).resolve().parents[1]
    ttl = os.environ.get("PAGE_CACHE_TTL_SECONDS")
    timeout = os.environ.get("PAGE_REQUEST_TIMEOUT_SECONDS")
    app.config.update(
        DB_PATH=os.environ.get("APP_DB_PATH", str(root / "app.sqlite")),
        REDIS_URL=os.environ.get("REDIS_URL"),
        PAGE_CACHE_TTL_SECONDS=int(ttl) if ttl else None,
        PAGE_CACHE_SINGLE_FLIGHT=_env_flag("PAGE_CACHE_SINGLE_FLIGHT"),
        PAGE_REQUEST_TIMEOUT_SECONDS=float(timeout) if timeout else None,
        LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
    )
    if config:
        app.config.update(config)

    configure_logging(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))
    db_path = app.config["DB_PATH"]
    init_db(db_path)

    cache = _build_cache(app.config)
    app.extensions["page_cache"] = PageCacheController(
        cache,
        GoodsRepo(db_path),
        TemplateRenderer(app.jinja_env),
        single_flight=bool(app.config["PAGE_CACHE_SINGLE_FLIGHT"]),
        ttl_seconds=app.config["PAGE_CACHE_TTL_SECONDS"],
    )
    app.extensions["user_repo"] = UserRepo(db_path)
    app.register_blueprint(flash_bp)
    instrument_app(app)

    @app.route("/")
    def index():
        return redirect(url_for("goods.to_list"))

    @app.get("/metrics")
    def metrics():
        return metrics_endpoint()

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok", "cache": cache.backend})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, host="127.0.0.1", port=int(os.environ.get("PORT", "5000")), threaded=True)
