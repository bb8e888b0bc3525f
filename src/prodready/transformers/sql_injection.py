"""
SQL Injection Fixer
===================
Rewrites a concatenated or interpolated query into a parameterized one.

    db.query("SELECT * FROM users WHERE age > " + minAge + " AND age < " + maxAge)

becomes

    db.query("SELECT * FROM users WHERE age > ? AND age < ?", [minAge, maxAge])

Each run of non-literal operands becomes one ``?`` placeholder and one entry
in the parameters array, in source order.  Placeholders that landed inside
a quoted SQL string (``'" + name + "'``) lose the quotes; ``LIKE '%" + q +
"%'`` moves the wildcards into the parameter.
"""

from __future__ import annotations

import re
from typing import Any

from prodready import rules
from prodready.analyzers.sql_injection import (
    has_concatenation,
    is_parameterized,
    is_query_call,
    resolve_query_declarator,
)
from prodready.errors import FixApplicationError
from prodready.model.issue import Issue
from prodready.source import ast_utils
from prodready.source.edits import TextEdit
from prodready.source.parser import ParsedSource
from prodready.transformers import LINE_TOLERANCE, BaseFixer, FixOutcome

EXPLANATION = "Converted string concatenation to parameterized query to prevent SQL injection"
EDUCATION = (
    "Parameterized queries separate SQL code from data, preventing attackers "
    "from injecting malicious SQL. Always use placeholders (?) for user input."
)

PLACEHOLDER = "?"

_TRAILING_WS = re.compile(r"[ \t]{2,}$")
_JS_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def requote(text: str, quote: str) -> str:
    """Render *text* as a JavaScript string literal delimited by *quote*."""
    out = []
    for ch in text:
        if ch in _JS_ESCAPES:
            out.append(_JS_ESCAPES[ch])
        elif ch == quote:
            out.append("\\" + ch)
        elif quote == "`" and ch == "$":
            out.append("\\$")
        else:
            out.append(ch)
    return quote + "".join(out) + quote


def _cooked(quasi: Any) -> str | None:
    value = getattr(quasi, "value", None)
    if isinstance(value, dict):
        return value.get("cooked")
    return getattr(value, "cooked", None)


def _flatten(node: Any) -> list[Any]:
    """Operands of a ``+`` chain, left to right.

    Only sub-chains that contain string pieces are expanded.  Numeric
    addition stays one value: ``"n=" + (a + 1)`` keeps ``a + 1`` and
    ``limit + offset + " rows"`` keeps ``limit + offset``.
    """
    if (
        getattr(node, "type", None) == "BinaryExpression"
        and node.operator == "+"
        and _has_string(node)
    ):
        left, right = node.left, node.right
        left_parts = _flatten(left) if _has_string(left) else [left]
        right_parts = _flatten(right) if _has_string(right) else [right]
        return left_parts + right_parts
    return [node]


def _has_string(node: Any) -> bool:
    if ast_utils.is_string_literal(node) or getattr(node, "type", None) == "TemplateLiteral":
        return True
    if getattr(node, "type", None) == "BinaryExpression" and node.operator == "+":
        return _has_string(node.left) or _has_string(node.right)
    return False


def _is_number(node: Any) -> bool:
    value = getattr(node, "value", None)
    return (
        node.type == "Literal"
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    )


def _quote_style(tree: ParsedSource, parts: list[Any]) -> str:
    for part in parts:
        if ast_utils.is_string_literal(part):
            first = tree.text_of(part)[:1]
            if first in {"'", '"'}:
                return first
    return '"'


def _expr_source(tree: ParsedSource, node: Any) -> str:
    start, end = ast_utils.node_range(node)
    start, end = ast_utils.unwrap_parens(tree.text, start, end)
    return tree.text[start:end]


def tokenize_query(tree: ParsedSource, query: Any) -> list[tuple[str, Any]]:
    """Alternating ``("text", str)`` / ``("exprs", [source, ...])`` tokens."""
    parts = [query] if query.type == "TemplateLiteral" else _flatten(query)
    tokens: list[tuple[str, Any]] = []

    def text(chunk: str) -> None:
        if tokens and tokens[-1][0] == "text":
            tokens[-1] = ("text", tokens[-1][1] + chunk)
        else:
            tokens.append(("text", chunk))

    def expr(source: str) -> None:
        if tokens and tokens[-1][0] == "exprs":
            tokens[-1][1].append(source)
        else:
            tokens.append(("exprs", [source]))

    for part in parts:
        if ast_utils.is_string_literal(part):
            text(part.value)
        elif _is_number(part):
            text(tree.text_of(part))
        elif part.type == "TemplateLiteral":
            raw_chunks = ast_utils.template_chunks(tree.text, part)
            for i, quasi in enumerate(part.quasis):
                cooked = _cooked(quasi)
                text(cooked if cooked is not None else raw_chunks[i])
                if i < len(part.expressions):
                    expr(tree.text_of(part.expressions[i]))
        else:
            expr(_expr_source(tree, part))
    return tokens


def _open_quote(sql: str) -> str | None:
    """Quote character of a SQL string literal left open at the end of *sql*."""
    for q in ("'", '"'):
        if sql.replace(q + q, "").count(q) % 2 == 1:
            return q
    return None


def _param(run: list[str], prefix: str, suffix: str) -> str:
    if len(run) == 1 and not prefix and not suffix:
        return run[0]
    body = requote(prefix, "`")[1:-1]
    body += "".join("${" + source + "}" for source in run)
    body += requote(suffix, "`")[1:-1]
    return "`" + body + "`"


def assemble(tokens: list[tuple[str, Any]]) -> tuple[str, list[str]]:
    """Join tokens into query text with placeholders; return ``(sql, params)``."""
    sql = ""
    params: list[str] = []
    skip = 0
    for index, (kind, value) in enumerate(tokens):
        if kind == "text":
            sql += value[skip:]
            skip = 0
            continue

        following = tokens[index + 1][1] if index + 1 < len(tokens) else ""
        prefix = suffix = ""
        quote = _open_quote(sql)
        if quote:
            close = following.find(quote)
            if close >= 0:
                head = sql.rfind(quote)
                prefix, suffix = sql[head + 1 :], following[:close]
                sql = sql[:head]
                skip = close + 1
        params.append(_param(value, prefix, suffix))
        sql = _TRAILING_WS.sub(" ", sql) + PLACEHOLDER
    return sql, params


def build_parameterized(tree: ParsedSource, query: Any) -> tuple[str, list[str]]:
    """Return ``(literal_source, params)`` for a concatenated/interpolated query."""
    sql, params = assemble(tokenize_query(tree, query))
    parts = [query] if query.type == "TemplateLiteral" else _flatten(query)
    return requote(sql, _quote_style(tree, parts)), params


def argument_span(tree: ParsedSource, call: Any, index: int) -> tuple[int, int]:
    """Range of ``call.arguments[index]`` including parentheses around it.

    The call's own argument parentheses are never included.
    """
    text = tree.text
    opening = text.index("(", ast_utils.node_range(call.callee)[1])
    closing = ast_utils.node_range(call)[1] - 1
    start, end = ast_utils.node_range(call.arguments[index])
    return ast_utils.unwrap_parens(text, start, end, bounds=(opening + 1, closing))


def params_insertion(tree: ParsedSource, call: Any, params: list[str]) -> TextEdit:
    """Insert the parameters array as the call's second argument."""
    array = "[" + ", ".join(params) + "]"
    if len(call.arguments) > 1:
        # An existing callback moves after the parameters.
        at = argument_span(tree, call, 1)[0]
        return TextEdit(at, at, array + ", ")
    at = argument_span(tree, call, 0)[1]
    return TextEdit(at, at, ", " + array)


class SQLInjectionFixer(BaseFixer):
    """Converts concatenated query text into placeholders plus a parameters array."""

    id = "sql-injection-fixer"
    issue_types = frozenset({rules.SQL_INJECTION})

    def fix(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        calls = [
            c for c in tree.nodes_of_type("CallExpression")
            if is_query_call(c) and c.arguments
        ]
        call = ast_utils.find_near_line(
            calls, issue.line, issue.column, tolerance=LINE_TOLERANCE
        )
        if call is None:
            raise FixApplicationError(f"no query call found near line {issue.line}")
        if is_parameterized(call):
            raise FixApplicationError("query call is already parameterized")

        query = call.arguments[0]
        if has_concatenation(query):
            target = query
        elif query.type == "Identifier":
            decl = resolve_query_declarator(tree, call, query.name)
            if decl is None:
                raise FixApplicationError(f"cannot resolve query text for {query.name!r}")
            target = decl.init
        else:
            raise FixApplicationError("query argument is not built by concatenation")

        literal, params = build_parameterized(tree, target)
        start, end = ast_utils.node_range(target)
        edits = [TextEdit(start, end, literal)]
        if params:
            edits.append(params_insertion(tree, call, params))
        return FixOutcome(tuple(edits), EXPLANATION, EDUCATION)
