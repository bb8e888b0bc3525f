"""Error-handling fixer.

``no-error-handling``: the async function body is wrapped in
``try { ... } catch (error) { ...; throw error; }``.  The catch logs through
``logger`` when one is in scope, else ``console``, and rethrows so callers
still observe the failure.

``unhandled-promise``: ``.catch(...)`` is appended to the outermost call of
the chain.
"""

from __future__ import annotations

from typing import Any

from prodready import rules
from prodready.analyzers.error_handling import (
    catch_follows,
    chain_above,
    has_own_try,
    looks_like_payment,
)
from prodready.errors import FixApplicationError
from prodready.model.issue import Issue
from prodready.source import ast_utils
from prodready.source.edits import TextEdit
from prodready.source.parser import ParsedSource
from prodready.transformers import LINE_TOLERANCE, BaseFixer, FixOutcome
from prodready.transformers.sql_injection import requote

EXPLANATION = "Added error handling to prevent crashes and improve reliability"
PROMISE_EXPLANATION = "Added .catch() handler so promise rejections are logged instead of going unhandled"
EDUCATION = (
    "Proper error handling prevents your application from crashing and provides "
    "better user experience. Always handle errors in async operations."
)

ANONYMOUS = "Anonymous function"
DEFAULT_INDENT = "  "
LOGGER_EXPR = "(typeof logger !== 'undefined' ? logger : console)"


def catch_lines(name: str, payment: bool) -> list[str]:
    """Statements of the generated catch block."""
    if payment:
        label = requote(f"Payment processing failed in {name}:", "'")
        return [
            f"{LOGGER_EXPR}.error({label}, error);",
            "throw new Error('Payment processing failed', { cause: error });",
        ]
    label = requote(f"{name} failed:", "'")
    return [f"{LOGGER_EXPR}.error({label}, error);", "throw error;"]


def _template_spans(tree: ParsedSource, root: Any) -> list[tuple[int, int]]:
    return [
        ast_utils.node_range(n)
        for n, _ in ast_utils.walk(root)
        if n.type == "TemplateLiteral"
    ]


def _inside(offset: int, spans: list[tuple[int, int]]) -> bool:
    return any(start < offset < end for start, end in spans)


def _indent_unit(tree: ParsedSource, body: Any, base: str) -> str:
    statements = getattr(body, "body", None) or []
    if not statements:
        return DEFAULT_INDENT
    first = tree.indent_of_line(ast_utils.node_line(statements[0]))
    if first.startswith(base) and len(first) > len(base):
        return first[len(base):]
    return DEFAULT_INDENT


def wrap_block(tree: ParsedSource, fn: Any, name: str, payment: bool) -> TextEdit:
    body = fn.body
    start, end = ast_utils.node_range(body)
    base = tree.indent_of_line(ast_utils.node_line(body))
    unit = _indent_unit(tree, body, base)
    spans = _template_spans(tree, body)

    inner_start, inner_end = start + 1, end - 1
    inner = tree.text[inner_start:inner_end]
    out = ["{", f"{base}{unit}try {{"]

    offset = inner_start
    for index, line in enumerate(inner.split("\n")):
        line_start, offset = offset, offset + len(line) + 1
        if not line.strip():
            # Leading/trailing blank fragments belong to the braces.
            if 0 < index < inner.count("\n"):
                out.append("")
            continue
        if _inside(line_start, spans):
            out.append(line)
        elif index == 0:
            out.append(f"{base}{unit}{unit}{line.strip()}")
        else:
            out.append(f"{unit}{line}")

    out.append(f"{base}{unit}}} catch (error) {{")
    out.extend(f"{base}{unit}{unit}{stmt}" for stmt in catch_lines(name, payment))
    out.append(f"{base}{unit}}}")
    out.append(f"{base}}}")
    return TextEdit(start, end, "\n".join(out))


def wrap_expression(tree: ParsedSource, fn: Any, name: str, payment: bool) -> TextEdit:
    start, end = ast_utils.node_range(fn.body)
    start, end = ast_utils.unwrap_parens(tree.text, start, end)
    base = tree.indent_of_line(ast_utils.node_line(fn))
    unit = DEFAULT_INDENT
    out = [
        "{",
        f"{base}{unit}try {{",
        f"{base}{unit}{unit}return {tree.text[start:end]};",
        f"{base}{unit}}} catch (error) {{",
    ]
    out.extend(f"{base}{unit}{unit}{stmt}" for stmt in catch_lines(name, payment))
    out.append(f"{base}{unit}}}")
    out.append(f"{base}}}")
    return TextEdit(start, end, "\n".join(out))


class ErrorHandlingFixer(BaseFixer):
    """Wraps async bodies in try/catch and terminates promise chains with ``.catch``."""

    id = "error-handling-fixer"
    issue_types = frozenset({rules.NO_ERROR_HANDLING, rules.UNHANDLED_PROMISE})

    def fix(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        if issue.type == rules.UNHANDLED_PROMISE:
            return self._fix_promise(tree, issue)
        return self._fix_async(tree, issue)

    def _fix_async(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        candidates = [
            n for n in tree.nodes if ast_utils.is_function(n) and ast_utils.is_async(n)
        ]
        fn = ast_utils.find_near_line(
            candidates, issue.line, issue.column, tolerance=LINE_TOLERANCE
        )
        if fn is None:
            raise FixApplicationError(f"no async function found near line {issue.line}")
        if has_own_try(fn):
            raise FixApplicationError("function already has a try/catch block")

        name = (
            issue.context.get("function_name")
            or ast_utils.function_name(tree, fn)
            or ANONYMOUS
        )
        payment = bool(issue.context.get("is_payment")) or looks_like_payment(tree, fn)
        if fn.body.type == "BlockStatement":
            edit = wrap_block(tree, fn, name, payment)
        else:
            edit = wrap_expression(tree, fn, name, payment)
        return FixOutcome((edit,), EXPLANATION, EDUCATION)

    def _fix_promise(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        thens = [
            c for c in tree.nodes_of_type("CallExpression")
            if ast_utils.is_method_call(c, "then")
        ]
        call = ast_utils.find_near_line(
            thens, issue.line, issue.column, tolerance=LINE_TOLERANCE
        )
        if call is None:
            raise FixApplicationError(f"no .then() call found near line {issue.line}")

        top = call
        for name, outer in chain_above(tree, call):
            if name == "catch":
                return FixOutcome((), "Promise chain already handles rejections", EDUCATION)
            top = outer
        rejection_handler = ast_utils.is_method_call(top, "then") and len(top.arguments) >= 2
        if rejection_handler or catch_follows(tree, call):
            return FixOutcome((), "Promise chain already handles rejections", EDUCATION)

        end = ast_utils.node_range(top)[1]
        handler = f".catch((error) => {LOGGER_EXPR}.error('Promise rejected:', error))"
        return FixOutcome((TextEdit(end, end, handler),), PROMISE_EXPLANATION, EDUCATION)
