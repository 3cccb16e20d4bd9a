"""Jinja2 template utilities for prompt rendering."""

from jinja2 import Environment, PackageLoader


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for prompt templates.

    Creates a configured Jinja2 environment that loads templates from
    the chatwindow.infrastructure.llm.templates package. Autoescaping is
    off: every block reaching a template is already escaped by the domain
    formatters.

    Returns:
        Configured Jinja2 environment.
    """
    return Environment(
        loader=PackageLoader("chatwindow.infrastructure.llm", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
