"""
AST Comparison

Structural equivalence of Python answers using the stdlib ast module.
Two answers match when their canonical AST dumps are equal.

Canonicalization:
- Local names (function parameters, loop targets, comprehension targets,
  lambda parameters) are alpha-renamed to _v0, _v1, ... per scope, so
  `for i in xs` and `for item in xs` compare equal. Globals, builtins and
  attribute names are left alone.
- Slices drop a literal lower bound of 0 and a literal step of 1, so
  items[0:3], items[:3] and items[:3:1] compare equal.
- Docstrings are removed from modules, functions and classes.

Code is parsed in exec mode first and falls back to eval mode.

Usage:
    from practice_engine.services.grading.ast_compare import compare_by_ast

    result = compare_by_ast(user_answer, exercise.expected_answer, exercise.accepted_solutions)
"""

import ast
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class AstCompareOptions:
    """Which canonicalization steps to apply."""

    rename_locals: bool = True
    normalize_slices: bool = True
    ignore_docstrings: bool = True


@dataclass
class AstCompareResult:
    """
    Outcome of an AST comparison.

    infra_available is False only if comparison itself blew up; a user
    answer that does not parse is simply not a match.
    """

    match: bool
    matched_alternative: Optional[str] = None
    infra_available: bool = True
    error: Optional[str] = None


def _is_int_constant(node: Optional[ast.AST], value: int) -> bool:
    return (
        isinstance(node, ast.Constant)
        and type(node.value) is int
        and node.value == value
    )


class Canonicalize(ast.NodeTransformer):
    """Rewrite an AST into the canonical form used for comparison."""

    def __init__(self, options: AstCompareOptions):
        self.options = options
        self.scopes: list[dict[str, str]] = []

    # Scope handling

    def _push_scope(self) -> None:
        self.scopes.append({})

    def _pop_scope(self) -> None:
        self.scopes.pop()

    def _bind_local(self, name: str) -> str:
        if not self.options.rename_locals:
            return name
        scope = self.scopes[-1]
        if name not in scope:
            scope[name] = f"_v{len(scope)}"
        return scope[name]

    def _lookup(self, name: str) -> str:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return name

    def _bind_target(self, target: ast.AST) -> ast.AST:
        """Bind loop/comprehension targets; other targets are visited normally."""
        if isinstance(target, ast.Name):
            target.id = self._bind_local(target.id)
            return target
        if isinstance(target, (ast.Tuple, ast.List)):
            target.elts = [self._bind_target(e) for e in target.elts]
            return target
        if isinstance(target, ast.Starred):
            target.value = self._bind_target(target.value)
            return target
        return self.visit(target)

    def _bind_arguments(self, args: ast.arguments) -> None:
        for arg in args.posonlyargs + args.args + args.kwonlyargs:
            arg.arg = self._bind_local(arg.arg)
        if args.vararg:
            args.vararg.arg = self._bind_local(args.vararg.arg)
        if args.kwarg:
            args.kwarg.arg = self._bind_local(args.kwarg.arg)

    def _strip_docstring(self, body: list[ast.stmt]) -> list[ast.stmt]:
        if not self.options.ignore_docstrings:
            return body
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            return body[1:]
        return body

    # Scope-creating nodes

    def visit_Module(self, node: ast.Module) -> ast.AST:
        self._push_scope()
        node.body = self._strip_docstring(node.body)
        self.generic_visit(node)
        self._pop_scope()
        return node

    def visit_Expression(self, node: ast.Expression) -> ast.AST:
        self._push_scope()
        node.body = self.visit(node.body)
        self._pop_scope()
        return node

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        # Defaults and decorators are evaluated in the enclosing scope
        node.decorator_list = [self.visit(d) for d in node.decorator_list]
        node.args.defaults = [self.visit(d) for d in node.args.defaults]
        node.args.kw_defaults = [
            self.visit(d) if d is not None else None for d in node.args.kw_defaults
        ]

        self._push_scope()
        self._bind_arguments(node.args)
        node.body = [self.visit(stmt) for stmt in self._strip_docstring(node.body)]
        self._pop_scope()
        return node

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        node.body = self._strip_docstring(node.body)
        return self.generic_visit(node)

    def visit_Lambda(self, node: ast.Lambda) -> ast.AST:
        node.args.defaults = [self.visit(d) for d in node.args.defaults]
        self._push_scope()
        self._bind_arguments(node.args)
        node.body = self.visit(node.body)
        self._pop_scope()
        return node

    def _visit_comprehension_scope(self, node: ast.AST, *elements: str) -> ast.AST:
        # Generators bind the names the element expression reads
        self._push_scope()
        node.generators = [self.visit_comprehension(g) for g in node.generators]
        for name in elements:
            setattr(node, name, self.visit(getattr(node, name)))
        self._pop_scope()
        return node

    def visit_ListComp(self, node: ast.ListComp) -> ast.AST:
        return self._visit_comprehension_scope(node, "elt")

    def visit_SetComp(self, node: ast.SetComp) -> ast.AST:
        return self._visit_comprehension_scope(node, "elt")

    def visit_GeneratorExp(self, node: ast.GeneratorExp) -> ast.AST:
        return self._visit_comprehension_scope(node, "elt")

    def visit_DictComp(self, node: ast.DictComp) -> ast.AST:
        return self._visit_comprehension_scope(node, "key", "value")

    def visit_comprehension(self, node: ast.comprehension) -> ast.AST:
        node.iter = self.visit(node.iter)
        node.target = self._bind_target(node.target)
        node.ifs = [self.visit(condition) for condition in node.ifs]
        return node

    def visit_For(self, node: ast.For) -> ast.AST:
        node.iter = self.visit(node.iter)
        node.target = self._bind_target(node.target)
        node.body = [self.visit(stmt) for stmt in node.body]
        node.orelse = [self.visit(stmt) for stmt in node.orelse]
        return node

    visit_AsyncFor = visit_For

    # Names

    def visit_Name(self, node: ast.Name) -> ast.AST:
        node.id = self._lookup(node.id)
        return node

    # Slices

    def visit_Slice(self, node: ast.Slice) -> ast.AST:
        if not self.options.normalize_slices:
            return self.generic_visit(node)

        if _is_int_constant(node.lower, 0):
            node.lower = None
        elif node.lower is not None:
            node.lower = self.visit(node.lower)

        if node.upper is not None:
            node.upper = self.visit(node.upper)

        if _is_int_constant(node.step, 1):
            node.step = None
        elif node.step is not None:
            node.step = self.visit(node.step)

        return node


def parse_code(code: str) -> Optional[ast.AST]:
    """Parse as statements, then as a single expression; None if neither parses."""
    try:
        return ast.parse(code, mode="exec")
    except (SyntaxError, ValueError):
        pass
    try:
        return ast.parse(code.strip(), mode="eval")
    except (SyntaxError, ValueError):
        return None


def normalize_code(code: str, options: Optional[AstCompareOptions] = None) -> Optional[str]:
    """
    Canonical AST dump of a Python answer.

    Args:
        code: Python source
        options: Canonicalization options (all enabled by default)

    Returns:
        ast.dump() of the canonical tree, or None if the code does not parse
    """
    tree = parse_code(code)
    if tree is None:
        return None
    tree = Canonicalize(options or AstCompareOptions()).visit(tree)
    return ast.dump(tree)


def compare_by_ast(
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str] = (),
    options: Optional[AstCompareOptions] = None,
) -> AstCompareResult:
    """
    Compare an answer to the expected answer and alternatives by structure.

    Args:
        user_answer: Learner's code
        expected_answer: Reference solution
        accepted_solutions: Alternatives, checked in order
        options: Canonicalization options

    Returns:
        AstCompareResult. A syntactically invalid answer is a non-match
        with infra_available=True. If no reference answer parses, the
        comparison cannot judge anything and reports infra_available=False.
    """
    options = options or AstCompareOptions()

    try:
        references = [(None, normalize_code(expected_answer, options))]
        references += [(alt, normalize_code(alt, options)) for alt in accepted_solutions]
        references = [(alt, norm) for alt, norm in references if norm is not None]

        if not references:
            logger.warning("No reference answer parses; AST comparison unavailable")
            return AstCompareResult(
                match=False, infra_available=False, error="Reference answers do not parse"
            )

        user_norm = normalize_code(user_answer, options)
        if user_norm is None:
            logger.debug("User answer does not parse; AST comparison is a non-match")
            return AstCompareResult(match=False)

        for alternative, reference_norm in references:
            if user_norm == reference_norm:
                return AstCompareResult(match=True, matched_alternative=alternative)

        return AstCompareResult(match=False)

    except (RecursionError, ValueError, MemoryError) as e:
        logger.warning(f"AST comparison failed: {e}")
        return AstCompareResult(match=False, infra_available=False, error=str(e))
