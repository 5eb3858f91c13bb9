"""Reconcile a Java submission with the file name javac expects.

Recognised grammar: a single ``public class Name`` declaration that starts a
line (optionally with ``final`` or ``abstract`` between ``public`` and
``class``). When one is present the source is used verbatim and ``Name``
becomes the file and main class name. Submissions declaring several public
classes, or only nested ones, are not handled specially: the first
line-leading declaration wins.

When no declaration is present the submission is treated as the body of
``main``: every ``import ...;`` line is lifted to the top of the file and
the remaining non-blank lines are wrapped in a generated ``Solution`` class.
"""
import re
from typing import NamedTuple

WRAPPER_CLASS = 'Solution'

PUBLIC_CLASS_RE = re.compile(
    r'^[ \t]*public\s+(?:(?:final|abstract)\s+)*class\s+([A-Za-z_$][A-Za-z0-9_$]*)',
    re.MULTILINE,
)

BODY_INDENT = ' ' * 8


class JavaSource(NamedTuple):
    class_name: str
    source: str


def find_public_class(code: str):
    match = PUBLIC_CLASS_RE.search(code)
    return match.group(1) if match else None


def _is_import(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith('import ') and stripped.endswith(';')


def wrap_in_main(code: str) -> str:
    imports = []
    body = []
    for line in code.splitlines():
        if _is_import(line):
            imports.append(line.strip())
        elif line.strip():
            body.append(BODY_INDENT + line)

    header = '\n'.join(imports) + '\n\n' if imports else ''
    return (
        f'{header}public class {WRAPPER_CLASS} {{\n'
        f'    public static void main(String[] args) {{\n'
        + '\n'.join(body)
        + '\n    }\n}\n'
    )


def reconcile(code: str) -> JavaSource:
    class_name = find_public_class(code)
    if class_name:
        return JavaSource(class_name, code)
    return JavaSource(WRAPPER_CLASS, wrap_in_main(code))
