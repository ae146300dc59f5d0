"""Checks that a pipeline configuration is complete and consistent."""

from __future__ import annotations

from velacompiler.pipeline import Build, Service, Stage, Step


class ValidationError(ValueError):
    """The pipeline configuration is not valid."""


def _is_inert(step: Step) -> bool:
    return not (
        step.commands
        or step.environment
        or step.parameters
        or step.secrets
        or step.template.name
        or step.detach
    )


def _validate_services(services: list[Service]) -> None:
    for service in services:
        if not service.name:
            raise ValidationError("no name provided for service")
        if not service.image:
            raise ValidationError(f"no image provided for service {service.name}")


def _validate_stages(stages: list[Stage]) -> None:
    for stage in stages:
        if not stage.name:
            raise ValidationError("no name provided for stage")
        if stage.name in stage.needs:
            raise ValidationError(f"stage {stage.name} references itself in 'needs' declaration")
        for step in stage.steps:
            if not step.name:
                raise ValidationError(f"no name provided for step for stage {stage.name}")
            if not step.image and not step.template.name:
                raise ValidationError(
                    f"no image or template provided for step {step.name} for stage {stage.name}"
                )
            if step.name in ("clone", "init"):
                continue
            if _is_inert(step):
                raise ValidationError(
                    "no commands, environment, parameters, secrets or template provided "
                    f"for step {step.name} for stage {stage.name}"
                )


def _validate_steps(steps: list[Step]) -> None:
    for step in steps:
        if not step.name:
            raise ValidationError("no name provided for step")
        if not step.image and not step.template.name:
            raise ValidationError(f"no image or template provided for step {step.name}")
        if step.name in ("clone", "init"):
            continue
        if _is_inert(step):
            raise ValidationError(
                "no commands, environment, parameters, secrets or template provided "
                f"for step {step.name}"
            )


def validate(build: Build) -> None:
    """Raise ValidationError if ``build`` is not a valid pipeline."""
    if not build.version:
        raise ValidationError("no version provided")
    if not build.stages and not build.steps:
        raise ValidationError("no stages or steps provided")
    if build.stages and build.steps:
        raise ValidationError("stages and steps provided")
    _validate_services(build.services)
    _validate_stages(build.stages)
    _validate_steps(build.steps)