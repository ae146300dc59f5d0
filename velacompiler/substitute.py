"""Replacing ${NAME} references in steps with their environment values."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable
from fnmatch import fnmatchcase

import yaml

from velacompiler.pipeline import Stage, Step
from velacompiler.script import _go_quote

_NAME = re.compile(r"[A-Za-z0-9_]+")

_OPERATORS = (":-", ":=", "^^", ",,", "##", "%%", "//", "/#", "/%", "-", "=", "^", ",", "#", "%", "/", ":")


class SubstitutionError(ValueError):
    """Variable substitution in a step failed."""


def _closing_brace(text: str, start: int) -> int:
    depth = 1
    i = start
    while i < len(text):
        if text.startswith("${", i):
            depth += 1
            i += 2
            continue
        if text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise SubstitutionError(f"missing closing brace in {text[start - 2:]!r}")


def _trim_prefix(value: str, pattern: str, longest: bool) -> str:
    cuts = range(len(value), -1, -1) if longest else range(len(value) + 1)
    for k in cuts:
        if fnmatchcase(value[:k], pattern):
            return value[k:]
    return value


def _trim_suffix(value: str, pattern: str, longest: bool) -> str:
    cuts = range(len(value) + 1) if longest else range(len(value), -1, -1)
    for k in cuts:
        if fnmatchcase(value[k:], pattern):
            return value[:k]
    return value


def _substring(value: str, arg: str, expr: str) -> str:
    pieces = arg.split(":")
    try:
        position = int(pieces[0].strip())
        length = int(pieces[1].strip()) if len(pieces) > 1 else None
    except ValueError as err:
        raise SubstitutionError(f"bad substitution: ${{{expr}}}") from err
    if position < 0:
        position = max(len(value) + position, 0)
    position = min(position, len(value))
    if length is None:
        return value[position:]
    if length < 0:
        return value[position:max(len(value) + length, position)]
    return value[position:position + length]


def _expand(expr: str, lookup: Callable[[str], str]) -> str:
    if expr.startswith("#") and _NAME.fullmatch(expr[1:]):
        return str(len(lookup(expr[1:])))
    match = _NAME.match(expr)
    if not match:
        raise SubstitutionError(f"bad substitution: ${{{expr}}}")
    name, rest = match.group(), expr[match.end():]
    value = lookup(name)
    if not rest:
        return value

    operator = next((op for op in _OPERATORS if rest.startswith(op)), None)
    if operator is None:
        raise SubstitutionError(f"bad substitution: ${{{expr}}}")
    arg = envsubst(rest[len(operator):], lookup)

    if operator in (":-", ":=", "-", "="):
        return value if value else arg
    if operator in ("^^", "^", ",,", ","):
        if arg:
            raise SubstitutionError(f"bad substitution: ${{{expr}}}")
        if operator == "^^":
            return value.upper()
        if operator == ",,":
            return value.lower()
        if operator == "^":
            return value[:1].upper() + value[1:]
        return value[:1].lower() + value[1:]
    if operator in ("##", "#"):
        return _trim_prefix(value, arg, longest=operator == "##")
    if operator in ("%%", "%"):
        return _trim_suffix(value, arg, longest=operator == "%%")
    if operator == ":":
        return _substring(value, arg, expr)

    pattern, _, replacement = arg.partition("/")
    if operator == "//":
        return value.replace(pattern, replacement)
    if operator == "/#":
        return replacement + value[len(pattern):] if value.startswith(pattern) else value
    if operator == "/%":
        if pattern and value.endswith(pattern):
            return value[: len(value) - len(pattern)] + replacement
        return value
    return value.replace(pattern, replacement, 1)


def envsubst(text: str, lookup: Callable[[str], str]) -> str:
    """Expand ``${NAME}`` forms in ``text``; ``$$`` stands for a literal ``$``."""
    out = []
    i = 0
    while i < len(text):
        if text.startswith("$$", i):
            out.append("$")
            i += 2
        elif text.startswith("${", i):
            end = _closing_brace(text, i + 2)
            out.append(_expand(text[i + 2:end], lookup))
            i = end + 1
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def _step_lookup(step: Step) -> Callable[[str], str]:
    def lookup(name: str) -> str:
        if name not in step.environment:
            return f"${{{name}}}"
        value = step.environment[name]
        if "\n" in value:
            return _go_quote(value)
        return value

    return lookup


def substitute_steps(steps: list[Step]) -> list[Step]:
    """Replace declared environment variables throughout each step."""
    for step in steps:
        try:
            body = yaml.safe_dump(step.to_dict(), sort_keys=False, width=2**31, allow_unicode=True)
        except yaml.YAMLError as err:
            raise SubstitutionError(f"unable to marshal configuration: {err}") from err

        try:
            substituted = envsubst(body, _step_lookup(step))
        except SubstitutionError as err:
            raise SubstitutionError(f"unable to substitute environment variables: {err}") from err

        try:
            updated = Step.from_dict(yaml.safe_load(substituted))
        except (yaml.YAMLError, ValueError) as err:
            raise SubstitutionError(f"unable to unmarshal configuration: {err}") from err

        for item in dataclasses.fields(Step):
            setattr(step, item.name, getattr(updated, item.name))
    return steps


def substitute_stages(stages: list[Stage]) -> list[Stage]:
    """Replace declared environment variables in the steps of every stage."""
    for stage in stages:
        stage.steps = substitute_steps(stage.steps)
    return stages