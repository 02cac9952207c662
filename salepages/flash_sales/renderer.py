import time
from typing import Any, Mapping

from jinja2 import Environment

from ..errors import RenderFailure
from ..observability import RENDER_LATENCY


class TemplateRenderer:
    """Renders page templates by id through a shared Jinja environment.

    Holds no per-request state; the environment is safe to share between
    request threads.
    """

    def __init__(self, env: Environment, suffix: str = ".html"):
        self.env = env
        self.suffix = suffix

    def render(self, template_id: str, context: Mapping[str, Any]) -> str:
        started = time.perf_counter()
        try:
            template = self.env.get_template(f"{template_id}{self.suffix}")
            return template.render(**context)
        except Exception as e:
            raise RenderFailure(template_id, str(e)) from e
        finally:
            RENDER_LATENCY.labels(template=template_id).observe(time.perf_counter() - started)
