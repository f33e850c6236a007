"""
Template rendering for product configuration documents.

Templates are jinja2 files looked up relative to a template directory. The
directory defaults to the ``templates`` folder shipped with this package and
can be overridden with the ``TEMPLATE_PATH`` setting.
"""

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..errors import ConfigurationError
from ..settings import settings

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def get_template_dir() -> Path:
    if settings.template_path:
        return Path(settings.template_path)
    return BUNDLED_TEMPLATE_DIR


class TemplateHelper:
    """Renders templates with a fixed set of substitution parameters."""

    def __init__(self, parameters: dict[str, Any], template_dir: Path | None = None):
        self.parameters = parameters
        self.template_dir = template_dir or get_template_dir()
        # Undefined names fail loudly instead of rendering as empty strings
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def load_template(self, path: str) -> bytes:
        """
        Render the named template with this helper's parameters.

        Args:
            path: Template path relative to the template directory

        Returns:
            Rendered template as UTF-8 bytes

        Raises:
            ConfigurationError: If the template is missing or fails to render
        """
        try:
            template = self.env.get_template(path)
            rendered = template.render(**self.parameters)
        except TemplateError as e:
            raise ConfigurationError(
                f"failed to render template {path} from {self.template_dir}: {e}",
                cause=e,
            ) from e
        logger.debug(f"Rendered template {path}")
        return rendered.encode("utf-8")
