"""Reading pipeline configuration from bytes, text, files and readers."""

from __future__ import annotations

import os
from typing import Any

import yaml

from velacompiler.pipeline import Build


class ParseError(ValueError):
    """The pipeline configuration could not be read or understood."""


def _is_path(text: str) -> bool:
    try:
        os.stat(text)
    except (OSError, ValueError):
        return False
    return True


def _to_text(data: Any) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return str(data)


def parse_raw(value: Any) -> str:
    """Return the configuration text held by, or pointed to by, ``value``."""
    if isinstance(value, (bytes, bytearray)):
        return _to_text(value)
    if isinstance(value, str):
        if _is_path(value):
            return parse_path_raw(value)
        return value
    if hasattr(value, "read"):
        return parse_reader_raw(value)
    raise ParseError(f"unable to parse yaml: unrecognized type {type(value).__name__}")


def parse(value: Any) -> Build:
    """Read a YAML pipeline from bytes, a path, a string or a readable object."""
    if isinstance(value, (bytes, bytearray)):
        return parse_bytes(bytes(value))
    if isinstance(value, str):
        if _is_path(value):
            return parse_path(value)
        return parse_string(value)
    if hasattr(value, "read"):
        return parse_reader(value)
    raise ParseError(f"unable to parse yaml: unrecognized type {type(value).__name__}")


def parse_bytes(data: bytes) -> Build:
    """Turn YAML bytes into a pipeline configuration."""
    try:
        document = yaml.safe_load(data)
        return Build.from_dict(document)
    except (yaml.YAMLError, ValueError) as err:
        raise ParseError(f"unable to unmarshal yaml: {err}") from err


def parse_string(text: str) -> Build:
    """Turn YAML text into a pipeline configuration."""
    return parse_bytes(text.encode("utf-8"))


def parse_file(file: Any) -> Build:
    """Read a pipeline configuration from an open file."""
    return parse_reader(file)


def parse_file_raw(file: Any) -> str:
    """Read the configuration text from an open file."""
    return parse_reader_raw(file)


def parse_path(path: str | os.PathLike) -> Build:
    """Read a pipeline configuration from the file at ``path``."""
    try:
        with open(path, "rb") as handle:
            return parse_reader(handle)
    except OSError as err:
        raise ParseError(f"unable to open yaml file {path}: {err}") from err


def parse_path_raw(path: str | os.PathLike) -> str:
    """Read the configuration text from the file at ``path``."""
    try:
        with open(path, "rb") as handle:
            return parse_reader_raw(handle)
    except OSError as err:
        raise ParseError(f"unable to open yaml file {path}: {err}") from err


def _read_all(reader: Any) -> Any:
    try:
        return reader.read()
    except (OSError, ValueError) as err:
        raise ParseError(f"unable to read bytes for yaml: {err}") from err


def parse_reader(reader: Any) -> Build:
    """Read everything from ``reader`` and parse it as a pipeline."""
    data = _read_all(reader)
    if isinstance(data, str):
        data = data.encode("utf-8")
    return parse_bytes(data)


def parse_reader_raw(reader: Any) -> str:
    """Read everything from ``reader`` as text."""
    return _to_text(_read_all(reader))