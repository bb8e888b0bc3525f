"""Error-handling detector — async functions and promise chains that can reject unobserved."""

from __future__ import annotations

from typing import Any, Iterator

from prodready import rules
from prodready.analyzers import is_source_file, is_test_file
from prodready.model import Category, Severity
from prodready.model.context import Context
from prodready.model.issue import FixRef, Issue, Location, make_fingerprint, make_issue_id
from prodready.source import ast_utils
from prodready.source.parser import ParsedSource

DEFAULT_WRAPPERS = ("asyncHandler", "catchAsync", "wrapAsync", "expressAsyncHandler")

_PAYMENT_WORDS = ("payment", "charge", "stripe")
_DB_OBJECTS = ("db", "database")

PAYMENT_MESSAGE = (
    "Missing error handling in payment processing code - this could cause "
    "failed transactions or duplicate charges"
)
DATABASE_MESSAGE = (
    "Missing error handling in database operation - this could cause data inconsistencies"
)
MULTI_AWAIT_MESSAGE = "Missing error handling in async function with multiple async operations"
DEFAULT_MESSAGE = "Missing error handling in async function - errors will crash the application"

PROMISE_MESSAGE = "Promise without .catch() handler - unhandled rejections can cause issues"
PAYMENT_PROMISE_MESSAGE = (
    "Promise without .catch() handler in payment code - a failed charge could go unnoticed"
)


def chain_above(tree: ParsedSource, call: Any) -> Iterator[tuple[str | None, Any]]:
    """Method calls made on the result of *call*, innermost first.

    For ``p.then(a).catch(b)`` starting at the ``then`` call this yields
    ``("catch", <catch call>)``.
    """
    current = call
    while True:
        member = tree.parent(current)
        if getattr(member, "type", None) != "MemberExpression" or member.object is not current:
            return
        outer = tree.parent(member)
        if getattr(outer, "type", None) != "CallExpression" or outer.callee is not member:
            return
        yield ast_utils.property_name(member), outer
        current = outer


def _statement_of(tree: ParsedSource, node: Any) -> Any | None:
    parent = tree.parent(node)
    if getattr(parent, "type", None) == "ExpressionStatement":
        return parent
    return None


def _next_statement(tree: ParsedSource, stmt: Any) -> Any | None:
    block = tree.parent(stmt)
    body = getattr(block, "body", None)
    if not isinstance(body, list):
        return None
    for i, item in enumerate(body):
        if item is stmt:
            return body[i + 1] if i + 1 < len(body) else None
    return None


def catch_follows(tree: ParsedSource, then_call: Any) -> bool:
    """``.catch`` chained on the result, or a ``.catch`` call as the next statement."""
    top = then_call
    for name, outer in chain_above(tree, then_call):
        if name == "catch":
            return True
        top = outer
    stmt = _statement_of(tree, top)
    if stmt is None:
        return False
    nxt = _next_statement(tree, stmt)
    if getattr(nxt, "type", None) != "ExpressionStatement":
        return False
    return ast_utils.is_method_call(nxt.expression, "catch")


def is_outermost_then(tree: ParsedSource, then_call: Any) -> bool:
    return all(name != "then" for name, _ in chain_above(tree, then_call))


def own_awaits(fn: Any) -> list[Any]:
    return [n for n in ast_utils.walk_own(fn) if n.type == "AwaitExpression"]


def has_own_try(fn: Any) -> bool:
    return any(n.type == "TryStatement" for n in ast_utils.walk_own(fn))


def looks_like_payment(tree: ParsedSource, fn: Any | None) -> bool:
    if fn is None:
        return False
    name = (ast_utils.function_name(tree, fn) or "").lower()
    if any(word in name for word in _PAYMENT_WORDS):
        return True
    for node, _ in ast_utils.walk(fn.body):
        if node.type == "Identifier":
            lowered = node.name.lower()
            if any(word in lowered for word in _PAYMENT_WORDS):
                return True
    return False


def touches_database(fn: Any) -> bool:
    for node, _ in ast_utils.walk(fn.body):
        if node.type == "MemberExpression" and node.object.type == "Identifier":
            name = node.object.name
            if name in _DB_OBJECTS or "model" in name.lower():
                return True
    return False


class ErrorHandlingAnalyzer:
    """Flags async functions without try/catch and ``.then`` chains without ``.catch``."""

    id = rules.NO_ERROR_HANDLING
    name = "Error Handling Detector"
    category = Category.RELIABILITY
    version = "1.1.0"

    def __init__(self, extra_wrappers: tuple[str, ...] = ()):
        self.wrappers = frozenset(DEFAULT_WRAPPERS) | frozenset(extra_wrappers)

    def should_run(self, file_id: str, context: Context) -> bool:
        return is_source_file(file_id) and not is_test_file(file_id)

    def analyze(self, tree: ParsedSource, context: Context, file_id: str) -> list[Issue]:
        issues = self._check_async_functions(tree, context, file_id)
        issues.extend(self._check_promise_chains(tree, context, file_id))
        return issues

    # ── async functions ─────────────────────────────────────────────

    def _is_wrapped(self, tree: ParsedSource, fn: Any) -> bool:
        parent = tree.parent(fn)
        if getattr(parent, "type", None) != "CallExpression":
            return False
        if len(parent.arguments) != 1 or parent.arguments[0] is not fn:
            return False
        return ast_utils.callee_name(parent) in self.wrappers

    def _check_async_functions(
        self, tree: ParsedSource, context: Context, file_id: str
    ) -> list[Issue]:
        issues: list[Issue] = []
        for fn in tree.nodes:
            if not ast_utils.is_function(fn) or not ast_utils.is_async(fn):
                continue
            awaits = own_awaits(fn)
            if not awaits or has_own_try(fn) or self._is_wrapped(tree, fn):
                continue

            payment = context.is_payment_code or looks_like_payment(tree, fn)
            if payment:
                message = PAYMENT_MESSAGE
            elif touches_database(fn):
                message = DATABASE_MESSAGE
            elif len(awaits) > 1:
                message = MULTI_AWAIT_MESSAGE
            else:
                message = DEFAULT_MESSAGE

            name = ast_utils.function_name(tree, fn)
            line = ast_utils.node_line(fn)
            column = ast_utils.node_column(fn)
            issues.append(
                Issue(
                    id=make_issue_id(rules.NO_ERROR_HANDLING, file_id, line, column),
                    type=rules.NO_ERROR_HANDLING,
                    severity=Severity.CRITICAL if payment else Severity.HIGH,
                    category=self.category,
                    location=Location(file=file_id, line=line, column=column),
                    message=message,
                    impact="Unhandled errors can crash your application",
                    educational_content=(
                        "Always handle errors in async functions to prevent crashes "
                        "and provide better user experience."
                    ),
                    fix=FixRef(
                        "Add try-catch block to handle errors properly",
                        fixer_id=rules.NO_ERROR_HANDLING,
                    ),
                    context={"is_payment": payment, "function_name": name},
                    fingerprint=make_fingerprint(
                        rules.NO_ERROR_HANDLING, file_id, line, name or ""
                    ),
                )
            )
        return issues

    # ── promise chains ──────────────────────────────────────────────

    def _check_promise_chains(
        self, tree: ParsedSource, context: Context, file_id: str
    ) -> list[Issue]:
        issues: list[Issue] = []
        for call in tree.nodes_of_type("CallExpression"):
            if not ast_utils.is_method_call(call, "then"):
                continue
            if len(call.arguments) >= 2:
                continue  # rejection handler passed as second argument
            if not is_outermost_then(tree, call) or catch_follows(tree, call):
                continue

            payment = context.is_payment_code or looks_like_payment(
                tree, tree.enclosing_function(call)
            )
            line = ast_utils.node_line(call)
            column = ast_utils.node_column(call)
            issues.append(
                Issue(
                    id=make_issue_id(rules.UNHANDLED_PROMISE, file_id, line, column),
                    type=rules.UNHANDLED_PROMISE,
                    severity=Severity.CRITICAL if payment else Severity.HIGH,
                    category=self.category,
                    location=Location(file=file_id, line=line, column=column),
                    message=PAYMENT_PROMISE_MESSAGE if payment else PROMISE_MESSAGE,
                    impact="Rejected promises surface as unhandled rejections and can terminate the process",
                    educational_content=(
                        "Every promise chain needs a rejection handler. End chains "
                        "with .catch() or use async/await inside try/catch."
                    ),
                    fix=FixRef(
                        "Add .catch() handler to handle promise rejections",
                        fixer_id=rules.UNHANDLED_PROMISE,
                    ),
                    context={"is_payment": payment},
                    fingerprint=make_fingerprint(
                        rules.UNHANDLED_PROMISE, file_id, line, tree.text_of(call.callee)
                    ),
                )
            )
        return issues
