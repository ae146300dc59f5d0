"""Parse, validate, script and substitute CI pipeline configurations and prepare template variables."""

__version__ = "0.1.0"

__all__ = [
    "pipeline",
    "parse",
    "script",
    "substitute",
    "validate",
    "template_vars",
    "starlark_values",
]