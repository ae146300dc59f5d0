"""Pipeline configuration model as read from a YAML document."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [_scalar(item) for item in value]
    raise ValueError(f"invalid {what}: expected a string or a list of strings")


def _string_map(value: Any, what: str) -> dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(key): _scalar(item) for key, item in value.items()}
    if isinstance(value, list):
        result = {}
        for item in value:
            key, sep, item_value = str(item).partition("=")
            if not sep:
                raise ValueError(f"invalid {what}: entry {item!r} is not of the form KEY=VALUE")
            result[key] = item_value
        return result
    raise ValueError(f"invalid {what}: expected a mapping or a list of KEY=VALUE strings")


def _mapping(value: Any, what: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"invalid {what}: expected a mapping")
    return value


def _list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"invalid {what}: expected a list")
    return value


@dataclass
class Metadata:
    """Pipeline-wide settings."""

    template: bool = False
    clone: bool | None = None
    environment: list[str] | None = None

    @classmethod
    def _from_dict(cls, data: Any) -> Metadata:
        data = _mapping(data, "metadata")
        clone = data.get("clone")
        environment = data.get("environment")
        return cls(
            template=bool(data.get("template", False)),
            clone=None if clone is None else bool(clone),
            environment=None if environment is None else _string_list(environment, "metadata environment"),
        )


@dataclass
class StepTemplate:
    """Reference from a step to a template and the variables it is rendered with."""

    name: str = ""
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _from_dict(cls, data: Any) -> StepTemplate:
        data = _mapping(data, "step template")
        return cls(
            name=_scalar(data.get("name")),
            variables=dict(_mapping(data.get("vars"), "template vars")),
        )


@dataclass
class StepSecret:
    """A secret injected into a step, possibly under another name."""

    source: str = ""
    target: str = ""

    @classmethod
    def _from_value(cls, data: Any) -> StepSecret:
        if isinstance(data, str):
            return cls(source=data, target=data)
        data = _mapping(data, "step secret")
        return cls(source=_scalar(data.get("source")), target=_scalar(data.get("target")))


@dataclass
class Step:
    """One container step of a pipeline."""

    name: str = ""
    image: str = ""
    pull: str = ""
    user: str = ""
    detach: bool = False
    commands: list[str] = field(default_factory=list)
    entrypoint: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    secrets: list[StepSecret] = field(default_factory=list)
    template: StepTemplate = field(default_factory=StepTemplate)
    ruleset: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Step:
        """Build a step from its YAML mapping."""
        if not isinstance(data, Mapping):
            raise ValueError("invalid step: expected a mapping")
        return cls(
            name=_scalar(data.get("name")),
            image=_scalar(data.get("image")),
            pull=_scalar(data.get("pull")),
            user=_scalar(data.get("user")),
            detach=bool(data.get("detach", False)),
            commands=_string_list(data.get("commands"), "commands"),
            entrypoint=_string_list(data.get("entrypoint"), "entrypoint"),
            environment=_string_map(data.get("environment"), "environment"),
            parameters=dict(_mapping(data.get("parameters"), "parameters")),
            secrets=[StepSecret._from_value(item) for item in _list(data.get("secrets"), "secrets")],
            template=StepTemplate._from_dict(data.get("template")),
            ruleset=dict(_mapping(data.get("ruleset"), "ruleset")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the YAML mapping of the step, leaving out empty fields."""
        result: dict[str, Any] = {}
        if self.name:
            result["name"] = self.name
        if self.image:
            result["image"] = self.image
        if self.pull:
            result["pull"] = self.pull
        if self.user:
            result["user"] = self.user
        if self.detach:
            result["detach"] = True
        if self.commands:
            result["commands"] = list(self.commands)
        if self.entrypoint:
            result["entrypoint"] = list(self.entrypoint)
        if self.environment:
            result["environment"] = dict(self.environment)
        if self.parameters:
            result["parameters"] = dict(self.parameters)
        if self.secrets:
            result["secrets"] = [{"source": s.source, "target": s.target} for s in self.secrets]
        if self.template.name or self.template.variables:
            template: dict[str, Any] = {}
            if self.template.name:
                template["name"] = self.template.name
            if self.template.variables:
                template["vars"] = dict(self.template.variables)
            result["template"] = template
        if self.ruleset:
            result["ruleset"] = dict(self.ruleset)
        return result


@dataclass
class Stage:
    """A named group of steps with its dependencies."""

    name: str = ""
    needs: list[str] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, name: str, data: Any) -> Stage:
        data = _mapping(data, f"stage {name}")
        needs = _string_list(data.get("needs"), "needs")
        if "clone" not in needs:
            needs.append("clone")
        steps = [Step.from_dict(item) for item in _list(data.get("steps"), "steps")]
        return cls(name=name, needs=needs, steps=steps)


@dataclass
class Service:
    """A long-running container available to the steps."""

    name: str = ""
    image: str = ""
    pull: str = ""
    entrypoint: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    ports: list[str] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Any) -> Service:
        data = _mapping(data, "service")
        return cls(
            name=_scalar(data.get("name")),
            image=_scalar(data.get("image")),
            pull=_scalar(data.get("pull")),
            entrypoint=_string_list(data.get("entrypoint"), "entrypoint"),
            environment=_string_map(data.get("environment"), "environment"),
            ports=_string_list(data.get("ports"), "ports"),
        )


@dataclass
class Origin:
    """A plugin container that provides a secret."""

    name: str = ""
    image: str = ""
    pull: str = ""
    environment: dict[str, str] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    secrets: list[StepSecret] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Any) -> Origin:
        data = _mapping(data, "origin")
        return cls(
            name=_scalar(data.get("name")),
            image=_scalar(data.get("image")),
            pull=_scalar(data.get("pull")),
            environment=_string_map(data.get("environment"), "environment"),
            parameters=dict(_mapping(data.get("parameters"), "parameters")),
            secrets=[StepSecret._from_value(item) for item in _list(data.get("secrets"), "secrets")],
        )


@dataclass
class Secret:
    """A secret declared for the pipeline."""

    name: str = ""
    key: str = ""
    engine: str = ""
    type: str = ""
    origin: Origin = field(default_factory=Origin)

    @classmethod
    def _from_dict(cls, data: Any) -> Secret:
        data = _mapping(data, "secret")
        return cls(
            name=_scalar(data.get("name")),
            key=_scalar(data.get("key")),
            engine=_scalar(data.get("engine")),
            type=_scalar(data.get("type")),
            origin=Origin._from_dict(data.get("origin")),
        )


@dataclass
class Worker:
    """Requirements on the worker that runs the pipeline."""

    flavor: str = ""
    platform: str = ""

    @classmethod
    def _from_dict(cls, data: Any) -> Worker:
        data = _mapping(data, "worker")
        return cls(flavor=_scalar(data.get("flavor")), platform=_scalar(data.get("platform")))


@dataclass
class Build:
    """A whole pipeline configuration."""

    version: str = ""
    metadata: Metadata = field(default_factory=Metadata)
    environment: dict[str, str] = field(default_factory=dict)
    worker: Worker = field(default_factory=Worker)
    secrets: list[Secret] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    stages: list[Stage] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    templates: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Build:
        """Build a pipeline from a loaded YAML document; None gives an empty one."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("invalid pipeline: expected a mapping at the top level")
        stages_data = data.get("stages")
        if stages_data is not None and not isinstance(stages_data, Mapping):
            raise ValueError("invalid stages: expected a mapping of stage names")
        return cls(
            version=_scalar(data.get("version")),
            metadata=Metadata._from_dict(data.get("metadata")),
            environment=_string_map(data.get("environment"), "environment"),
            worker=Worker._from_dict(data.get("worker")),
            secrets=[Secret._from_dict(item) for item in _list(data.get("secrets"), "secrets")],
            services=[Service._from_dict(item) for item in _list(data.get("services"), "services")],
            stages=[Stage._from_dict(str(name), body) for name, body in (stages_data or {}).items()],
            steps=[Step.from_dict(item) for item in _list(data.get("steps"), "steps")],
            templates=[dict(_mapping(item, "template")) for item in _list(data.get("templates"), "templates")],
        )