import importlib.util
from pathlib import Path
from datetime import datetime

from salepages.app import create_app
from salepages.flash_sales.cache import GOODS_DETAIL, GOODS_LIST, SimpleCache

ROOT = Path(__file__).resolve().parents[1]


def load_module(name, path):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


warm_script = load_module("warm_page_cache", ROOT / "scripts" / "warm_page_cache.py")
seed_script = load_module("seed_flash_sales", ROOT / "db" / "seed_flash_sales.py")


def test_seed_then_warm_fills_every_page(tmp_path, capsys):
    db_path = str(tmp_path / "warm.sqlite")
    cache = SimpleCache(default_ttl=None)
    app = create_app({"DB_PATH": db_path, "PAGE_CACHE_STORE": cache})

    assert seed_script.seed_flash_sales(db_path, now=datetime(2024, 11, 11, 12, 0)) == 3
    # re-seeding refreshes rows instead of duplicating them
    assert seed_script.seed_flash_sales(db_path, now=datetime(2024, 11, 11, 12, 0)) == 3

    summary = warm_script.warm(app)

    assert summary["listing"] is True
    assert len(summary["details"]) == 3
    assert summary["failed"] == {}
    assert cache.get(GOODS_LIST.key())
    for goods_id in summary["details"]:
        assert cache.get(GOODS_DETAIL.key(goods_id))


def test_warm_respects_limit(tmp_path):
    db_path = str(tmp_path / "limit.sqlite")
    cache = SimpleCache(default_ttl=None)
    app = create_app({"DB_PATH": db_path, "PAGE_CACHE_STORE": cache})
    seed_script.seed_flash_sales(db_path)

    summary = warm_script.warm(app, limit=1)
    assert len(summary["details"]) == 1
