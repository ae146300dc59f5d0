"""Turning step commands into a single encoded shell script."""

from __future__ import annotations

import base64
from collections.abc import Iterable

from velacompiler.pipeline import Stage, Step

_SETUP_SCRIPT = """
cat <<EOF > $HOME/.netrc
machine $VELA_NETRC_MACHINE
login $VELA_NETRC_USERNAME
password $VELA_NETRC_PASSWORD
EOF
chmod 0600 $HOME/.netrc
unset VELA_NETRC_MACHINE
unset VELA_NETRC_USERNAME
unset VELA_NETRC_PASSWORD
unset VELA_BUILD_SCRIPT
{}
"""

_TRACE_SCRIPT = """
echo $ {}
{}
"""

_SCRIPT_COMMAND = "echo $VELA_BUILD_SCRIPT | base64 -d | /bin/sh -e"

_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _go_quote(text: str) -> str:
    """Quote ``text`` as a double-quoted string with backslash escapes."""
    out = ['"']
    for ch in text:
        code = ord(ch)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def generate_script_posix(commands: Iterable[str]) -> str:
    """Build the base64-encoded shell script that traces and runs ``commands``."""
    body = "".join(
        _TRACE_SCRIPT.format(_go_quote(command).replace("$", "\\$"), command)
        for command in commands
    )
    script = _SETUP_SCRIPT.format(body)
    return base64.b64encode(script.encode("utf-8")).decode("ascii")


def script_steps(steps: list[Step]) -> list[Step]:
    """Replace each step's commands with a call to its generated script."""
    for step in steps:
        if not step.commands:
            continue
        home = f"/{step.user}" if step.user else "/root"
        script = generate_script_posix(step.commands)
        step.entrypoint = ["/bin/sh", "-c"]
        step.commands = [_SCRIPT_COMMAND]
        step.environment["VELA_BUILD_SCRIPT"] = script
        step.environment["HOME"] = home
        step.environment["SHELL"] = "/bin/sh"
    return steps


def script_stages(stages: list[Stage]) -> list[Stage]:
    """Inject scripts into the steps of every stage."""
    for stage in stages:
        stage.steps = script_steps(stage.steps)
    return stages