"""
Template loading and rendering utilities using Jinja2.
"""

import shutil
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

# Templates shipped inside the package
DEFAULT_TEMPLATES = Path(__file__).parent.parent / "templates"


class TemplateLoader:
    """
    Loads and renders Jinja2 templates.

    Supports custom templates in a workspace with fallback to the packaged defaults.
    """

    def __init__(self, workspace_root: Path | None = None):
        """
        Initialize template loader.

        Args:
            workspace_root: Path to workspace directory (None for packaged templates only)
        """
        self.workspace_templates = Path(workspace_root) / "templates" if workspace_root else None
        self.default_templates = DEFAULT_TEMPLATES
        self._env: Environment | None = None
        self._template_cache: dict[str, Template] = {}

    def has_custom_templates(self) -> bool:
        """Check if workspace has custom templates."""
        return self.workspace_templates is not None and self.workspace_templates.exists()

    @property
    def env(self) -> Environment:
        """
        Get or create Jinja2 environment (cached).

        Returns:
            Cached Jinja2 Environment configured for template loading
        """
        if self._env is None:
            template_dirs = []

            if self.has_custom_templates():
                template_dirs.append(str(self.workspace_templates))

            if self.default_templates.exists():
                template_dirs.append(str(self.default_templates))

            if not template_dirs:
                raise FileNotFoundError("No template directories found")

            self._env = Environment(
                loader=FileSystemLoader(template_dirs),
                undefined=StrictUndefined,
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=False,
            )

        return self._env

    def load_template(self, template_name: str) -> Template:
        """
        Load a Jinja2 template with caching.

        Args:
            template_name: Template name (e.g., "prompts/extract_intents.txt.j2")

        Returns:
            Cached Jinja2 Template object
        """
        if template_name not in self._template_cache:
            self._template_cache[template_name] = self.env.get_template(template_name)

        return self._template_cache[template_name]

    def render(self, template_name: str, **context) -> str:
        """Render a template to a string."""
        return self.load_template(template_name).render(**context)

    def copy_default_templates_to_workspace(self) -> None:
        """
        Copy the packaged prompt templates into the workspace for customization.

        An existing templates/ directory is moved aside to templates.backup/.
        """
        if self.workspace_templates is None:
            raise ValueError("No workspace configured for template copy")
        if not self.default_templates.exists():
            raise FileNotFoundError(f"Default templates not found at {self.default_templates}")

        if self.workspace_templates.exists():
            backup_dir = self.workspace_templates.with_name("templates.backup")
            if backup_dir.exists():
                shutil.rmtree(backup_dir)
            shutil.move(str(self.workspace_templates), str(backup_dir))

        shutil.copytree(str(self.default_templates), str(self.workspace_templates))
        self._env = None
        self._template_cache.clear()
