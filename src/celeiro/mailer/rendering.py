"""Email templates rendered with Jinja2."""

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

AUTH_CODE = "auth_code"
ORGANIZATION_INVITE = "organization_invite"

_environment = Environment(
    loader=PackageLoader("celeiro.mailer", "templates"),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


def available_templates() -> list[str]:
    """Template names, without the .html suffix."""
    return sorted(
        name[: -len(".html")] for name in _environment.list_templates() if name.endswith(".html")
    )


def render_template(name: str, data: dict) -> str:
    """Render templates/<name>.html with data.

    Raises:
        jinja2.TemplateNotFound: If no template has that name
    """
    return _environment.get_template(f"{name}.html").render(**data)
