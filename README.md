# velacompiler

Tools for working with CI pipeline configurations:

- **Model**: `Build`, `Stage`, `Step`, `Service`, `Secret`, `Origin`, `Worker`,
  `Metadata`, `StepSecret` and `StepTemplate` in `velacompiler.pipeline`, built from a
  loaded YAML document with `Build.from_dict`.
- **Parsing**: read a pipeline from bytes, text, a path, an open file or any object with a
  `read()` method (`velacompiler.parse`: `parse`, `parse_bytes`, `parse_string`,
  `parse_file`, `parse_path`, `parse_reader`, and the `*_raw` variants and `parse_raw`
  that return the text itself).
- **Validation**: `velacompiler.validate.validate` checks that a pipeline has a version,
  has either stages or steps but not both, that services have a name and image, that
  stages are named and do not list themselves in `needs`, and that every step has a
  name, an image or template, and something to do.
- **Scripting**: `velacompiler.script.script_steps` / `script_stages` turn each step's
  `commands` into one base64-encoded POSIX shell script (`generate_script_posix`), set
  the entrypoint to `/bin/sh -c`, and set `VELA_BUILD_SCRIPT`, `HOME` and `SHELL` in the
  step's environment.
- **Substitution**: `velacompiler.substitute.substitute_steps` / `substitute_stages`
  replace `${NAME}` references in a step with values from that step's environment.
  `$$` stands for a literal `$`, unknown names are left as `${NAME}`, and values that
  contain a newline are inserted quoted. `envsubst(text, lookup)` is available on its own
  and supports the common shell forms such as `${NAME:-default}`, `${NAME^^}`,
  `${NAME#prefix}` and `${NAME/old/new}`.
- **Template variables**: `velacompiler.template_vars` (`convert_platform_vars`,
  `PlatformVars`) collects `VELA_*` variables for text templates;
  `velacompiler.starlark_values` (`to_starlark`, `convert_template_vars`,
  `convert_platform_vars`, `write_json`, `go_quote_is_safe`) converts template data to
  plain Python values grouped as `build`, `repo`, `user` and `system`, and writes such
  values out as JSON text.

## Installation

```
pip install velacompiler
```

## Usage

```python
from velacompiler.parse import parse
from velacompiler.validate import validate, ValidationError
from velacompiler.substitute import substitute_steps
from velacompiler.script import script_steps

build = parse("""
version: "1"
steps:
  - name: test
    image: alpine
    environment:
      GREETING: hello
    commands:
      - echo ${GREETING}
""")

try:
    validate(build)
except ValidationError as err:
    print(f"invalid pipeline: {err}")

steps = script_steps(substitute_steps(build.steps))
print(steps[0].entrypoint)   # ['/bin/sh', '-c']
```

`parse` takes bytes, a string that is either a path to an existing file or the YAML
itself, an open file or any object with a `read()` method. A `ParseError` is raised
for an unsupported input type, a file that cannot be opened or read, or content that
is not a valid pipeline.

### Template variables

```python
from velacompiler.template_vars import PlatformVars, convert_platform_vars
from velacompiler.starlark_values import convert_platform_vars as group_vars, write_json

env = {"VELA_BUILD_AUTHOR": "octocat", "VELA_WORKSPACE": "/vela/src"}

lookup = PlatformVars(convert_platform_vars(env, "my-template"))
print(lookup("VELA_BUILD_AUTHOR"))   # octocat

print(write_json(group_vars(env, "my-template")["build"]))   # {"author": "octocat"}
```

Values that cannot be converted raise `ConversionError`.

## What this package does not do

It does not fetch templates from a template registry, and it does not render templates:
there is no text-template engine and no Starlark interpreter here. It also does not turn
a configuration into an executable pipeline with IDs for steps, services and secrets.
It prepares, checks and rewrites configurations and template variables only.

## Running the tests

```
pip install -e ".[test]"
pytest
```