"""
Answer Normalization

Normalizes Python answers before string comparison so incidental
formatting differences don't fail a correct answer.

normalize_python():
- dedents the answer and strips surrounding blank lines
- strips trailing whitespace from every line
- writes commas as ", " and dict colons as ": "
- keeps string literals and comments verbatim, so "a,b" stays "a,b"
- does NOT collapse runs of spaces inside a line ("x  =  1" is unchanged)

normalize_output() is the looser rule for predicted program output:
surrounding whitespace and trailing newlines are dropped, case is kept.
"""

import re
import textwrap

# String literals (triple-quoted first) and comments; copied through verbatim
_VERBATIM_RE = re.compile(
    r'[rRbBuUfF]{0,2}"""[\s\S]*?"""'
    r"|[rRbBuUfF]{0,2}'''[\s\S]*?'''"
    r'|[rRbBuUfF]{0,2}"(?:\\.|[^"\\\n])*"'
    r"|[rRbBuUfF]{0,2}'(?:\\.|[^'\\\n])*'"
    r"|#[^\n]*"
)

_OPENERS = "([{"
_CLOSERS = ")]}"


def _normalize_code(segment: str, brackets: list[str]) -> str:
    """
    Normalize separator spacing in a code segment.

    brackets is the open-bracket stack, shared across segments so a dict
    split by string literals is still recognised.
    """
    out: list[str] = []
    i = 0
    while i < len(segment):
        char = segment[i]

        if char in _OPENERS:
            brackets.append(char)
        elif char in _CLOSERS:
            if brackets:
                brackets.pop()
        elif char == "," or (char == ":" and brackets and brackets[-1] == "{"):
            while out and out[-1] in " \t":
                out.pop()
            out.append(char + " ")
            i += 1
            while i < len(segment) and segment[i] in " \t":
                i += 1
            continue

        out.append(char)
        i += 1

    return "".join(out)


def normalize_python(code: str) -> str:
    """
    Normalize a Python answer for string comparison.

    Args:
        code: Raw answer text

    Returns:
        Normalized answer ("" for empty or whitespace-only input)
    """
    code = textwrap.dedent(code.replace("\r\n", "\n")).strip()
    if not code:
        return ""

    brackets: list[str] = []
    parts: list[str] = []
    position = 0
    for match in _VERBATIM_RE.finditer(code):
        parts.append(_normalize_code(code[position : match.start()], brackets))
        parts.append(match.group(0))
        position = match.end()
    parts.append(_normalize_code(code[position:], brackets))

    lines = "".join(parts).split("\n")
    return "\n".join(line.rstrip() for line in lines).strip()


def normalize_output(output: str) -> str:
    """Normalize program output: trim, drop trailing newlines."""
    return output.strip().rstrip("\n")


def normalize_fill_in(answer: str) -> str:
    return answer.strip()
