"""
Token Comparison

Compares answers as Python token streams (stdlib tokenize), ignoring
comments, blank lines and line breaks. Indentation is still significant
through INDENT/DEDENT tokens.
"""

import io
import logging
import tokenize
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

IGNORED_TOKEN_TYPES = frozenset(
    {
        tokenize.COMMENT,
        tokenize.NL,
        tokenize.NEWLINE,
        tokenize.ENCODING,
        tokenize.ENDMARKER,
    }
)

Token = tuple[int, str]


@dataclass
class TokenCompareResult:
    match: bool
    matched_alternative: Optional[str] = None


def tokenize_code(code: str) -> Optional[list[Token]]:
    """
    Tokenize Python source into (type, string) pairs.

    Returns:
        Significant tokens, or None if the code cannot be tokenized
    """
    try:
        tokens = tokenize.generate_tokens(io.StringIO(code).readline)
        return [
            (token.type, token.string)
            for token in tokens
            if token.type not in IGNORED_TOKEN_TYPES
        ]
    except (tokenize.TokenError, SyntaxError) as e:
        logger.debug(f"Could not tokenize answer: {e}")
        return None


def compare_by_tokens(
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str] = (),
) -> TokenCompareResult:
    """
    Compare an answer to the expected answer and alternatives token by token.

    An answer that cannot be tokenized, or has no significant tokens, never
    matches.
    """
    user_tokens = tokenize_code(user_answer)
    if not user_tokens:
        return TokenCompareResult(match=False)

    if tokenize_code(expected_answer) == user_tokens:
        return TokenCompareResult(match=True)

    for alternative in accepted_solutions:
        if tokenize_code(alternative) == user_tokens:
            return TokenCompareResult(match=True, matched_alternative=alternative)

    return TokenCompareResult(match=False)
