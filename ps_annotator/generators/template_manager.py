"""Template manager for loading and rendering Jinja2 templates.

Renders the description prompt sent to the API and the comment block
inserted above each function from templates stored in the package's
templates/ directory.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

PROMPT_TEMPLATE = "prompt.j2"
COMMENT_BLOCK_TEMPLATE = "comment_block.j2"


class TemplateManager:
    """Loads and renders Jinja2 templates for prompts and comment blocks."""

    def __init__(self, templates_dir: Optional[str] = None) -> None:
        """Initialize the template manager.

        Args:
            templates_dir: Path to the templates directory. Uses the
                packaged templates/ directory if not specified.
        """
        self._templates_path = (
            Path(templates_dir) if templates_dir else _DEFAULT_TEMPLATES_DIR
        )

        if not self._templates_path.exists():
            logger.warning("Templates directory not found: %s", self._templates_path)

        self._env = Environment(
            loader=FileSystemLoader(str(self._templates_path)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._crlf_env = self._env.overlay(newline_sequence="\r\n")
        logger.debug("Template manager initialized with: %s", self._templates_path)

    def render_prompt(self, function_text: str) -> str:
        """Render the description request for one function.

        Args:
            function_text: Verbatim source of the function.

        Returns:
            Prompt string ready for API submission.
        """
        return self._render(PROMPT_TEMPLATE, function_text=function_text)

    def render_comment_block(
        self, description: str, function_text: str, newline: str = "\n"
    ) -> str:
        """Render a function preceded by its description comment.

        A ``#>`` in the description would end the comment early, so it
        is written as ``# >``.

        Args:
            description: Generated or fallback description.
            function_text: Verbatim source of the function.
            newline: Line ending for the comment block, ``"\\n"`` or
                ``"\\r\\n"``. The function text is left untouched.

        Returns:
            The comment block followed by the function text.
        """
        description = description.replace("#>", "# >")
        description = "\n".join(description.splitlines()).replace("\n", newline)
        return self._render(
            COMMENT_BLOCK_TEMPLATE,
            newline=newline,
            description=description,
            function_text=function_text,
        )

    def _render(self, template_name: str, newline: str = "\n", **kwargs: Any) -> str:
        """Render a template with the given context variables.

        Raises:
            TemplateNotFound: If the template file does not exist.
        """
        env = self._crlf_env if newline == "\r\n" else self._env
        template = env.get_template(template_name)
        rendered = template.render(**kwargs)
        logger.debug("Rendered template %s (%d chars)", template_name, len(rendered))
        return rendered

    def list_templates(self) -> list[str]:
        """List all available template files."""
        return self._env.list_templates()
