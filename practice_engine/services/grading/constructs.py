"""
Construct Detection

Detects whether an answer uses a target Python construct, for the coaching
pass of the grading pipeline.

Answers that parse are inspected through their AST, so constructs inside
string literals or comments are never reported. Answers that don't parse
(fragments, predicted output) fall back to regexes run on the code with
strings and comments stripped.
"""

import ast
import re
from typing import Callable, Optional, Sequence, Union

from practice_engine.enums.grading import ConstructType
from practice_engine.models.grading import ConstructCheckResult
from practice_engine.services.grading.ast_compare import parse_code

ConstructLike = Union[ConstructType, str]


def _is_builtin_call(node: ast.AST, name: str) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == name
    )


def _is_interpolated_fstring(node: ast.AST) -> bool:
    return isinstance(node, ast.JoinedStr) and any(
        isinstance(value, ast.FormattedValue) for value in node.values
    )


AST_DETECTORS: dict[ConstructType, Callable[[ast.AST], bool]] = {
    ConstructType.SLICE: lambda node: isinstance(node, ast.Slice),
    ConstructType.COMPREHENSION: lambda node: isinstance(
        node, (ast.ListComp, ast.SetComp, ast.DictComp)
    ),
    ConstructType.GENERATOR_EXPR: lambda node: isinstance(node, ast.GeneratorExp),
    ConstructType.F_STRING: _is_interpolated_fstring,
    ConstructType.TERNARY: lambda node: isinstance(node, ast.IfExp),
    ConstructType.ENUMERATE: lambda node: _is_builtin_call(node, "enumerate"),
    ConstructType.ZIP: lambda node: _is_builtin_call(node, "zip"),
    ConstructType.LAMBDA: lambda node: isinstance(node, ast.Lambda),
}

CONSTRUCT_PATTERNS: dict[ConstructType, re.Pattern] = {
    # At least one colon inside brackets
    ConstructType.SLICE: re.compile(r"\[[^\]]*:[^\]]*\]"),
    # [expr for x in xs] or {expr for x in xs}
    ConstructType.COMPREHENSION: re.compile(r"[\[{][^}\]]*\bfor\b[^}\]]+\bin\b[^}\]]+[\]}]"),
    ConstructType.GENERATOR_EXPR: re.compile(r"\([^)]*\bfor\b[^)]+\bin\b[^)]+\)"),
    ConstructType.F_STRING: re.compile(r"f[\"'][^\"']*\{[^}]+\}[^\"']*[\"']"),
    ConstructType.TERNARY: re.compile(r"\S+\s+if\s+.+\s+else\s+\S+"),
    ConstructType.ENUMERATE: re.compile(r"\benumerate\s*\("),
    ConstructType.ZIP: re.compile(r"\bzip\s*\("),
    ConstructType.LAMBDA: re.compile(r"\blambda\b[^:]*:"),
}

_FSTRING_RE = re.compile(r"f([\"'])(?:[^\"'\\]|\\.)*?\{[^}]*\}(?:[^\"'\\]|\\.)*?\1")
_STRING_RE = re.compile(r"(?<!f)([\"'])(?:[^\"'\\]|\\.)*?\1")
_COMMENT_RE = re.compile(r"#.*")


def strip_strings_and_comments(code: str) -> str:
    """
    Blank out string literals and drop comments.

    f-strings with a placeholder are reduced to f"{x}" so f-string detection
    still works on the stripped code.
    """
    cleaned = _FSTRING_RE.sub(lambda m: f"f{m.group(1)}{{x}}{m.group(1)}", code)
    cleaned = _STRING_RE.sub('""', cleaned)
    return _COMMENT_RE.sub("", cleaned)


def _as_construct(construct_type: ConstructLike) -> Optional[ConstructType]:
    try:
        return ConstructType(construct_type)
    except ValueError:
        return None


def check_construct(code: str, construct_type: ConstructLike) -> ConstructCheckResult:
    """
    Check if code contains a specific Python construct.

    Args:
        code: Learner's answer
        construct_type: Construct to look for. Unknown types are never
            detected.

    Returns:
        ConstructCheckResult for the requested construct
    """
    construct = _as_construct(construct_type)
    if construct is None:
        return ConstructCheckResult(detected=False, construct_type=None)

    tree = parse_code(code)
    if tree is not None:
        detector = AST_DETECTORS[construct]
        detected = any(detector(node) for node in ast.walk(tree))
    else:
        detected = bool(CONSTRUCT_PATTERNS[construct].search(strip_strings_and_comments(code)))

    return ConstructCheckResult(detected=detected, construct_type=construct)


def check_any_construct(
    code: str, construct_types: Sequence[ConstructLike]
) -> ConstructCheckResult:
    """
    Check if code contains any of the given constructs.

    Constructs are checked in order; the first one detected is returned.
    """
    for construct_type in construct_types:
        result = check_construct(code, construct_type)
        if result.detected:
            return result

    return ConstructCheckResult(detected=False, construct_type=None)
