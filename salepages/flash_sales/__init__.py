"""Flash Sales Module - Cached sale pages and sale window evaluation"""

from .routes import flash_bp
from .page_cache import PageCacheController, SaleDetail
from .sale_window import SaleStatus, SaleWindow, evaluate
from .cache import SimpleCache, RedisCache, CacheLookup, cache_key
from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from .renderer import TemplateRenderer

__all__ = [
    'flash_bp',
    'PageCacheController',
    'SaleDetail',
    'SaleStatus',
    'SaleWindow',
    'evaluate',
    'SimpleCache',
    'RedisCache',
    'CacheLookup',
    'cache_key',
    'CircuitBreaker',
    'CircuitBreakerOpenError',
    'TemplateRenderer',
]
