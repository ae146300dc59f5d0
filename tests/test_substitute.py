import pytest

from velacompiler.pipeline import Stage, Step
from velacompiler.substitute import (
    SubstitutionError,
    envsubst,
    substitute_stages,
    substitute_steps,
)

COMPLEX = '{"hello":\n  "world"}'


def input_steps():
    return [
        Step(
            commands=["echo ${FOO}", "echo $${BAR}"],
            environment={"FOO": "baz", "BAR": "baz"},
            image="alpine:latest",
            name="simple",
            pull="always",
        ),
        Step(
            commands=["echo ${COMPLEX}"],
            environment={"COMPLEX": COMPLEX},
            image="alpine:latest",
            name="advanced",
            pull="always",
        ),
        Step(
            commands=["echo $NOT_FOUND", "echo ${NOT_FOUND}", "echo $${NOT_FOUND}"],
            environment={"FOO": "baz", "BAR": "baz"},
            image="alpine:latest",
            name="not_found",
            pull="always",
        ),
    ]


def expected_steps():
    return [
        Step(
            commands=["echo baz", "echo ${BAR}"],
            environment={"FOO": "baz", "BAR": "baz"},
            image="alpine:latest",
            name="simple",
            pull="always",
        ),
        Step(
            commands=['echo "{\\"hello\\":\\n  \\"world\\"}"'],
            environment={"COMPLEX": COMPLEX},
            image="alpine:latest",
            name="advanced",
            pull="always",
        ),
        Step(
            commands=["echo $NOT_FOUND", "echo ${NOT_FOUND}", "echo ${NOT_FOUND}"],
            environment={"FOO": "baz", "BAR": "baz"},
            image="alpine:latest",
            name="not_found",
            pull="always",
        ),
    ]


def test_substitute_steps():
    assert substitute_steps(input_steps()) == expected_steps()


def test_substitute_steps_updates_in_place():
    steps = input_steps()
    first = steps[0]
    substitute_steps(steps)
    assert first.commands == ["echo baz", "echo ${BAR}"]


def test_substitute_stages():
    names = ["simple", "advanced", "not_found"]
    stages = [Stage(name=name, steps=[step]) for name, step in zip(names, input_steps())]
    want = [Stage(name=name, steps=[step]) for name, step in zip(names, expected_steps())]
    assert substitute_stages(stages) == want


def test_substitute_steps_bad_expression():
    step = Step(name="bad", image="alpine", commands=["echo ${FOO"], environment={"FOO": "x"})
    with pytest.raises(SubstitutionError, match="unable to substitute environment variables"):
        substitute_steps([step])


def lookup(values):
    return lambda name: values.get(name, "")


@pytest.mark.parametrize(
    "text,values,want",
    [
        ("${A}", {"A": "x"}, "x"),
        ("a ${A} b", {"A": "x"}, "a x b"),
        ("$${A}", {"A": "x"}, "${A}"),
        ("$A", {"A": "x"}, "$A"),
        ("${A:-fallback}", {}, "fallback"),
        ("${A:-fallback}", {"A": "set"}, "set"),
        ("${A^^}", {"A": "hello"}, "HELLO"),
        ("${A^}", {"A": "hello"}, "Hello"),
        ("${A,,}", {"A": "HELLO"}, "hello"),
        ("${#A}", {"A": "hello"}, "5"),
        ("${A:1:3}", {"A": "hello"}, "ell"),
        ("${A/l/L}", {"A": "hello"}, "heLlo"),
        ("${A//l/L}", {"A": "hello"}, "heLLo"),
        ("${A#*l}", {"A": "hello"}, "lo"),
        ("${A##*l}", {"A": "hello"}, "o"),
        ("${A%l*}", {"A": "hello"}, "hel"),
        ("${A%%l*}", {"A": "hello"}, "he"),
        ("${A:-${B}}", {"B": "inner"}, "inner"),
    ],
)
def test_envsubst(text, values, want):
    assert envsubst(text, lookup(values)) == want


@pytest.mark.parametrize("text", ["${A", "${}", "${A?x}"])
def test_envsubst_errors(text):
    with pytest.raises(SubstitutionError):
        envsubst(text, lookup({"A": "x"}))