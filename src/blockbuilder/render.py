"""HTML rendering of forms and repeatable controls with Jinja2 templates."""

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .consts import TEMPLATE_FORM, TEMPLATE_REPEATABLE
from .i18n import gettext as _

logger = logging.getLogger(__name__)

_default_renderer: Optional["FormRenderer"] = None


class FormRenderer:
    """Render view models produced by instances and form controllers.

    Rendering is a pure function of the view it is given; instances decide
    what is collapsed, which errors apply and what the canonical paths are.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        template_dir = template_dir or Path(__file__).parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.globals["_"] = _

    def render_repeatable(self, view) -> str:
        """Render one repeatable control.

        Args:
            view: RepeatableView built by the owning instance

        Returns:
            HTML fragment for the control, nested controls included
        """
        template = self.jinja_env.get_template(TEMPLATE_REPEATABLE)
        return template.render(view=view)

    def render_form(self, form, fields: list) -> str:
        """Render a whole form.

        Args:
            form: FormSchema with title and button texts
            fields: FieldView objects in schema order

        Returns:
            HTML for the form element
        """
        template = self.jinja_env.get_template(TEMPLATE_FORM)
        return template.render(form=form, fields=fields)


def get_default_renderer() -> FormRenderer:
    global _default_renderer

    if _default_renderer is None:
        _default_renderer = FormRenderer()
        logger.debug("Default form renderer created")
    return _default_renderer
