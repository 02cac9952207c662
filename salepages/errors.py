"""Error taxonomy for the flash sale page cache.

Only CacheUnavailable is absorbed by the controller; every other error
propagates to the web layer, which maps ``http_status`` onto the response.
"""


class PageCacheError(Exception):
    """Base class for page cache failures"""

    http_status = 500


class CacheUnavailable(PageCacheError):
    """Cache store read or write failed"""

    http_status = 503

    def __init__(self, key: str, reason: str = ""):
        self.key = key
        self.reason = reason
        super().__init__(f"Cache store unavailable for {key}: {reason}" if reason else f"Cache store unavailable for {key}")


class RecordNotFound(PageCacheError):
    """No goods record exists for the requested id"""

    http_status = 404

    def __init__(self, goods_id):
        self.goods_id = goods_id
        super().__init__(f"Goods {goods_id} not found")


class DataSourceUnavailable(PageCacheError):
    """Backing store failed; the request may be retried"""

    http_status = 503


class RenderFailure(PageCacheError):
    """Template renderer raised for the given template/context"""

    http_status = 500

    def __init__(self, template_id: str, reason: str = ""):
        self.template_id = template_id
        self.reason = reason
        super().__init__(f"Rendering '{template_id}' failed: {reason}")


class DeadlineExceeded(PageCacheError):
    """Caller deadline passed before the request could complete"""

    http_status = 504

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Deadline exceeded before {stage}")
