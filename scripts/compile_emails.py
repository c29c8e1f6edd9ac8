#!/usr/bin/env python3
"""Compile email templates by inlining CSS and minifying HTML.

This script processes Jinja2 email templates, inlines their CSS, and minifies
the output. The compiled templates are saved to the compiled/ subdirectory
and loaded at runtime by app/core/email.py.

Run this script after modifying email templates:
    python scripts/compile_emails.py
"""

from pathlib import Path

import css_inline
import minify_html
from jinja2 import Environment, FileSystemLoader, select_autoescape

project_root = Path(__file__).parent.parent

# Template configuration: maps template names to their Jinja2 variables
TEMPLATES = {
    "otp-code.j2": ["app_name", "code", "expires_minutes"],
}

# Plain-text marker; survives CSS inlining and minification untouched
MARKER_PREFIX = "JINJAVAR__"


def compile_template(
    env: Environment,
    template_name: str,
    variables: list[str],
    output_dir: Path,
) -> None:
    """Compile a single email template.

    Args:
        env: Jinja2 environment
        template_name: Name of the template file
        variables: List of Jinja2 variable names used in the template
        output_dir: Directory to save compiled template
    """
    context = {var: f"{MARKER_PREFIX}{var}" for var in variables}

    html_content = env.get_template(template_name).render(**context)
    html_content = css_inline.inline(html_content)
    html_content = minify_html.minify(html_content, minify_css=True)

    # Longest names first so "code" never clobbers a "code_*" marker.
    for var in sorted(variables, key=len, reverse=True):
        html_content = html_content.replace(f"{MARKER_PREFIX}{var}", f"{{{{ {var} }}}}")

    output_path = output_dir / (Path(template_name).stem + ".html")
    output_path.write_text(html_content, encoding="utf-8")
    print(f"  ✓ {template_name} -> {output_path.name}")


def main() -> None:
    """Compile all email templates."""
    templates_dir = project_root / "app" / "templates" / "emails"
    output_dir = templates_dir / "compiled"
    output_dir.mkdir(exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )

    print("Compiling email templates...")

    for template_name, variables in TEMPLATES.items():
        if not (templates_dir / template_name).exists():
            print(f"  ✗ {template_name} (not found)")
            continue
        compile_template(env, template_name, variables, output_dir)

    print(f"\nCompiled templates saved to: {output_dir}")


if __name__ == "__main__":
    main()
