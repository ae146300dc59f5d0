"""Conversion of template data to Starlark-style values and to JSON text.

Starlark values are modelled with Python's own types: ``None``, ``bool``,
``int``, ``float``, ``str``, ``tuple``, ``list`` and ``dict``.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from velacompiler.script import _go_quote

_log = logging.getLogger(__name__)

_BUILD = "build_"
_REPO = "repo_"
_USER = "user_"


class ConversionError(ValueError):
    """A value cannot be converted to the requested form."""


def to_starlark(value: Any) -> Any:
    """Return the Starlark-style counterpart of ``value``."""
    _log.debug("converting %r to starlark type", value)

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return tuple(to_starlark(item) for item in value)
    if isinstance(value, Mapping):
        return {to_starlark(key): to_starlark(item) for key, item in value.items()}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_starlark(dataclasses.asdict(value))
    raise ConversionError(f"unable to convert to starlark type: {value!r}")


def convert_template_vars(variables: Mapping[str, Any]) -> dict[str, Any]:
    """Convert user template variables for use as ``ctx["vars"]``."""
    return {str(key): to_starlark(value) for key, value in variables.items()}


def convert_platform_vars(env: Mapping[str, str], name: str) -> dict[str, dict[str, str]]:
    """Group ``VELA_*`` variables into build, repo, user and system dictionaries."""
    build: dict[str, str] = {}
    repo: dict[str, str] = {}
    user: dict[str, str] = {}
    system: dict[str, str] = {"template_name": name}

    for key, value in env.items():
        key = key.lower()
        if not key.startswith("vela_"):
            continue
        key = key.removeprefix("vela_")
        if key.startswith(_BUILD):
            build[key.removeprefix(_BUILD)] = value
        elif key.startswith(_REPO):
            repo[key.removeprefix(_REPO)] = value
        elif key.startswith(_USER):
            user[key.removeprefix(_USER)] = value
        else:
            system[key] = value

    return {"build": build, "repo": repo, "user": user, "system": system}


def go_quote_is_safe(text: str) -> bool:
    """Whether backslash quoting of ``text`` is also valid JSON."""
    return all(0x20 <= ord(ch) < 0x10000 for ch in text)


def _json_string(text: str) -> str:
    out = ['"']
    for ch in text:
        code = ord(ch)
        if ch == '"':
            out.append('\\"')
        elif ch == "\\":
            out.append("\\\\")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif code < 0x20 or ch in "<>&" or code in (0x2028, 0x2029):
            out.append(f"\\u{code:04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _format_float(number: float) -> str:
    """Format like a shortest-precision ``%g``."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, number) < 0 else ""
    if number == 0:
        return sign + "0"

    _, digit_tuple, exponent = Decimal(repr(abs(number))).as_tuple()
    all_digits = "".join(str(d) for d in digit_tuple)
    point = len(all_digits) + exponent
    digits = all_digits.rstrip("0") or "0"
    exp = point - 1

    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return sign + digits + "0" * (point - len(digits))
    return f"{sign}{digits[:point]}.{digits[point:]}"


def _write(value: Any, out: list[str]) -> None:
    if value is None:
        out.append("null")
    elif isinstance(value, bool):
        out.append("true" if value else "false")
    elif isinstance(value, int):
        out.append(str(value))
    elif isinstance(value, float):
        out.append(_format_float(value))
    elif isinstance(value, str):
        out.append(_go_quote(value) if go_quote_is_safe(value) else _json_string(value))
    elif isinstance(value, (list, tuple)):
        out.append("[")
        for index, item in enumerate(value):
            if index:
                out.append(", ")
            _write(item, out)
        out.append("]")
    elif isinstance(value, Mapping):
        out.append("{")
        for index, (key, item) in enumerate(value.items()):
            if index:
                out.append(", ")
            _write(key, out)
            out.append(": ")
            _write(item, out)
        out.append("}")
    else:
        raise ConversionError(f"unable to convert to json: {value!r}")


def write_json(value: Any) -> str:
    """Return the JSON text for a Starlark-style value."""
    _log.debug("converting %r to JSON", value)
    out: list[str] = []
    _write(value, out)
    return "".join(out)