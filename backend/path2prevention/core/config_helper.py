from pathlib import Path

import jinja2
from core.logging import logger


def get_prompt(path: str, **context) -> str:
    """Render the Jinja2 prompt template at ``path`` with ``context``.

    Relative paths are resolved against the backend directory. Undefined
    variables render as empty strings so optional context can be omitted.
    """
    prompt_template_path = Path(path)
    if not prompt_template_path.is_absolute():
        backend_dir = Path(__file__).resolve().parent.parent.parent
        prompt_template_path = backend_dir / path

    prompt_template_loader = jinja2.FileSystemLoader(
        searchpath=str(prompt_template_path.parent)
    )
    prompt_template_env = jinja2.Environment(
        loader=prompt_template_loader, trim_blocks=True, lstrip_blocks=True
    )
    try:
        prompt_template = prompt_template_env.get_template(prompt_template_path.name)
        rendered = prompt_template.render(**context)
        logger.debug("Rendered prompt template {}", prompt_template_path)
        return rendered
    except jinja2.TemplateError:
        logger.exception("Failed to render prompt template {}", prompt_template_path)
        raise
