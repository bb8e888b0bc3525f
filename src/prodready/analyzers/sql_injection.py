"""
SQL Injection Detector
======================
Flags database query calls whose query text is assembled from runtime
values instead of being passed as parameters.

Detected patterns:
- ``db.query("SELECT ... " + userId)``             (string concatenation)
- ``db.query(`SELECT ... ${userId}`)``             (template interpolation)
- ``const sql = "..." + id; db.query(sql)``        (concatenated declarator)

Parameterized calls (``db.query(sql, [id])`` or ``db.query(sql, {id})``) and
plain literal queries are never flagged.
"""

from __future__ import annotations

from typing import Any

from prodready import rules
from prodready.analyzers import is_source_file, is_test_file
from prodready.model import Category, Severity
from prodready.model.context import Context
from prodready.model.issue import FixRef, Issue, Location, make_fingerprint, make_issue_id
from prodready.source import ast_utils
from prodready.source.parser import ParsedSource

QUERY_METHODS = frozenset({"query", "execute", "run", "get", "all", "raw"})
QUERY_FUNCTIONS = frozenset({"query", "execute", "run"})

_PARAMS_TYPES = frozenset({"ArrayExpression", "ObjectExpression"})

_AUTH_MARKERS = ("auth", "login")

MESSAGE = (
    "SQL injection vulnerability detected - user input is concatenated "
    "directly into SQL query"
)
AUTH_MESSAGE = (
    "SQL injection vulnerability detected in authentication endpoint - "
    "this is extremely dangerous"
)
IMPACT = "Attackers could read, modify, or delete your entire database"
EDUCATION = (
    "SQL injection occurs when user input is directly concatenated into SQL "
    "queries. Always use parameterized queries or prepared statements."
)


def is_query_call(node: Any) -> bool:
    callee = getattr(node, "callee", None)
    if callee is None:
        return False
    if callee.type == "MemberExpression":
        name = ast_utils.property_name(callee)
        return bool(name) and name.lower() in QUERY_METHODS
    if callee.type == "Identifier":
        return callee.name.lower() in QUERY_FUNCTIONS
    return False


def has_concatenation(node: Any) -> bool:
    """True for ``+`` anywhere in a binary chain or an interpolating template."""
    kind = getattr(node, "type", None)
    if kind == "BinaryExpression":
        if node.operator == "+":
            return True
        return has_concatenation(node.left) or has_concatenation(node.right)
    if kind == "TemplateLiteral":
        return bool(node.expressions)
    return False


def is_parameterized(call: Any) -> bool:
    args = call.arguments
    return len(args) > 1 and args[1].type in _PARAMS_TYPES


def resolve_query_declarator(tree: ParsedSource, call: Any, name: str) -> Any | None:
    """Nearest preceding declarator of *name* in the call's scope that concatenates."""
    scope = tree.enclosing_function(call)
    call_start = ast_utils.node_range(call)[0]
    best = None
    for decl in tree.nodes_of_type("VariableDeclarator"):
        if not ast_utils.is_identifier(decl.id, name) or decl.init is None:
            continue
        if ast_utils.node_range(decl)[0] >= call_start:
            continue
        if tree.enclosing_function(decl) is not scope:
            continue
        best = decl
    if best is not None and has_concatenation(best.init):
        return best
    return None


class SQLInjectionAnalyzer:
    """Detects query strings built from concatenation or interpolation."""

    id = rules.SQL_INJECTION
    name = "SQL Injection Detector"
    category = Category.SECURITY
    version = "1.1.0"

    def should_run(self, file_id: str, context: Context) -> bool:
        return is_source_file(file_id) and not is_test_file(file_id)

    def analyze(self, tree: ParsedSource, context: Context, file_id: str) -> list[Issue]:
        issues: list[Issue] = []
        auth = self._is_auth_context(context, file_id)

        for call in tree.nodes_of_type("CallExpression"):
            if not is_query_call(call) or not call.arguments:
                continue
            if is_parameterized(call):
                continue

            query_arg = call.arguments[0]
            extra: dict[str, Any] = {"auth_context": auth}
            if has_concatenation(query_arg):
                snippet = tree.text_of(query_arg)
            elif query_arg.type == "Identifier":
                decl = resolve_query_declarator(tree, call, query_arg.name)
                if decl is None:
                    continue
                extra["declarator_line"] = ast_utils.node_line(decl)
                extra["declarator_name"] = query_arg.name
                snippet = tree.text_of(decl.init)
            else:
                continue

            line = ast_utils.node_line(call)
            column = ast_utils.node_column(call)
            issues.append(
                Issue(
                    id=make_issue_id(self.id, file_id, line, column),
                    type=rules.SQL_INJECTION,
                    severity=Severity.CRITICAL,
                    category=self.category,
                    location=Location(file=file_id, line=line, column=column),
                    message=AUTH_MESSAGE if auth else MESSAGE,
                    impact=IMPACT,
                    educational_content=EDUCATION,
                    fix=FixRef(
                        "Use parameterized queries to prevent SQL injection",
                        fixer_id=rules.SQL_INJECTION,
                    ),
                    context=extra,
                    fingerprint=make_fingerprint(self.id, file_id, line, snippet),
                )
            )
        return issues

    @staticmethod
    def _is_auth_context(context: Context, file_id: str) -> bool:
        if context.is_authentication_code:
            return True
        for route in context.routes:
            path = route.path.lower()
            if any(marker in path for marker in _AUTH_MARKERS):
                return True
        lowered = file_id.lower()
        return any(marker in lowered for marker in _AUTH_MARKERS)
