import pytest

from velacompiler.pipeline import Build, Service, Stage, Step, StepTemplate
from velacompiler.validate import ValidationError, validate


def good_step(name="foo"):
    return Step(commands=["echo hello"], image="alpine", name=name, pull="always")


def is_valid(build):
    try:
        validate(build)
    except ValidationError:
        return False
    return True


def test_no_version():
    with pytest.raises(ValidationError, match="no version provided"):
        validate(Build())


def test_no_stages_or_steps():
    with pytest.raises(ValidationError, match="no stages or steps provided"):
        validate(Build(version="v1"))


def test_stages_and_steps():
    build = Build(
        version="v1",
        stages=[Stage(name="foo", steps=[good_step()])],
        steps=[good_step()],
    )
    with pytest.raises(ValidationError, match="stages and steps provided"):
        validate(build)


def test_services_valid():
    build = Build(
        version="v1",
        services=[Service(image="postgres", name="foo", ports=["8080:8080"])],
        steps=[good_step()],
    )
    assert is_valid(build) is True


def test_services_no_name():
    build = Build(
        version="v1",
        services=[Service(image="postgres", name="", ports=["8080:8080"])],
        steps=[good_step()],
    )
    with pytest.raises(ValidationError, match="no name provided for service"):
        validate(build)


def test_services_no_image():
    build = Build(
        version="v1",
        services=[Service(image="", name="foo", ports=["8080:8080"])],
        steps=[good_step()],
    )
    with pytest.raises(ValidationError, match="no image provided for service foo"):
        validate(build)


def test_stages_valid():
    assert is_valid(Build(version="v1", stages=[Stage(name="foo", steps=[good_step()])])) is True


def test_stages_no_name():
    step = Step(commands=["echo hello"], name="foo", pull="always")
    with pytest.raises(ValidationError, match="no name provided for stage"):
        validate(Build(version="v1", stages=[Stage(name="", steps=[step])]))


def test_stages_no_step_name():
    step = Step(commands=["echo hello"], name="", pull="always")
    with pytest.raises(ValidationError, match="no name provided for step for stage foo"):
        validate(Build(version="v1", stages=[Stage(name="foo", steps=[step])]))


def test_stages_no_image():
    step = Step(commands=["echo hello"], name="foo", pull="always")
    with pytest.raises(ValidationError, match="no image or template provided for step foo for stage foo"):
        validate(Build(version="v1", stages=[Stage(name="foo", steps=[step])]))


def test_stages_no_commands():
    step = Step(image="alpine", name="foo", pull="always")
    with pytest.raises(ValidationError, match="for step foo for stage foo"):
        validate(Build(version="v1", stages=[Stage(name="foo", steps=[step])]))


def test_stages_needs_self_reference():
    stage = Stage(name="foo", needs=["foo"], steps=[good_step()])
    with pytest.raises(ValidationError, match="references itself in 'needs' declaration"):
        validate(Build(version="v1", stages=[stage]))


def test_steps_valid():
    assert is_valid(Build(version="v1", steps=[good_step()])) is True


def test_steps_no_name():
    step = Step(commands=["echo hello"], name="", pull="always")
    with pytest.raises(ValidationError, match="no name provided for step"):
        validate(Build(version="v1", steps=[step]))


def test_steps_no_image():
    step = Step(commands=["echo hello"], name="foo", pull="always")
    with pytest.raises(ValidationError, match="no image or template provided for step foo"):
        validate(Build(version="v1", steps=[step]))


def test_steps_no_commands():
    step = Step(image="alpine", name="foo", pull="always")
    with pytest.raises(ValidationError, match="no commands, environment, parameters, secrets or template"):
        validate(Build(version="v1", steps=[step]))


@pytest.mark.parametrize(
    "step",
    [
        Step(image="target/vela-git", name="clone"),
        Step(image="alpine", name="init"),
        Step(image="alpine", name="svc", detach=True),
        Step(name="tmpl", template=StepTemplate(name="builder")),
        Step(image="alpine", name="env", environment={"A": "b"}),
    ],
)
def test_steps_exemptions(step):
    assert is_valid(Build(version="v1", steps=[step])) is True