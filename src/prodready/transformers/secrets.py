"""Hardcoded-secrets fixer: replaces the literal with an environment read.

The variable name comes from the binding (``stripeApiKey`` ->
``STRIPE_API_KEY``) unless the call or object around the literal names a
known provider, in which case the provider's conventional name wins.
"""

from __future__ import annotations

import re
from typing import Any

from prodready import rules
from prodready.analyzers.secrets import (
    CONNECTION_STRING_RE,
    should_inspect,
    value_digest,
)
from prodready.errors import FixApplicationError
from prodready.model.issue import Issue
from prodready.source import ast_utils
from prodready.source.edits import TextEdit
from prodready.source.parser import ParsedSource
from prodready.transformers import LINE_TOLERANCE, BaseFixer, FixOutcome

ENV_NAMESPACE = "process.env"
FALLBACK_NAME = "API_SECRET"

DB_FACTORIES = frozenset(
    {"createConnection", "createPool", "createClient", "connect", "Pool", "Client", "Sequelize", "knex"}
)
_DB_KEYS = frozenset({"host", "database", "user", "username"})
_PASSWORD_KEY_RE = re.compile(r"pass(?:word)?|pwd", re.IGNORECASE)
_DB_LABEL_RE = re.compile(r"(?:^|[^a-z0-9])(?:db|database)(?:$|[^a-z0-9])")

_WORD_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])|([A-Z]+)([A-Z][a-z])")
_INVALID_RE = re.compile(r"[^A-Z0-9_]")

EDUCATION = (
    "Never commit secrets to source control. Use environment variables or "
    "secret management services."
)


def to_env_name(name: str) -> str:
    """``stripeApiKey`` -> ``STRIPE_API_KEY``; ``AWSSecret`` -> ``AWS_SECRET``."""
    snake = _WORD_BOUNDARY_RE.sub(
        lambda m: f"{m.group(1)}_{m.group(2)}" if m.group(1) else f"{m.group(3)}_{m.group(4)}",
        name,
    )
    env = _INVALID_RE.sub("_", snake.upper())
    if not env[:1].isalpha():
        env = "SECRET_" + env
    return env


def _call_label(call: Any) -> str:
    """Lower-cased name describing a call: its callee, or the module a
    ``require('x')(...)`` call wraps."""
    callee = call.callee
    if callee.type == "CallExpression" and ast_utils.is_identifier(callee.callee, "require"):
        arg = callee.arguments[0] if callee.arguments else None
        if ast_utils.is_string_literal(arg):
            return arg.value.lower()
    path = ast_utils.static_path(callee)
    if path:
        return path.lower()
    return (ast_utils.callee_name(call) or "").lower()


def _object_call(tree: ParsedSource, obj: Any) -> Any | None:
    parent = tree.parent(obj)
    if getattr(parent, "type", None) in {"CallExpression", "NewExpression"}:
        return parent
    return None


def _is_db_object(tree: ParsedSource, obj: Any) -> bool:
    keys = {ast_utils.key_name(p) for p in obj.properties if p.type == "Property"}
    if keys & _DB_KEYS:
        return True
    call = _object_call(tree, obj)
    return call is not None and ast_utils.callee_name(call) in DB_FACTORIES


def _argument_index(call: Any, node: Any) -> int | None:
    offset = ast_utils.node_range(node)[0]
    for index, arg in enumerate(call.arguments):
        start, end = ast_utils.node_range(arg)
        if start <= offset < end:
            return index
    return None


def _provider_name(label: str, index: int | None, key: str | None) -> str | None:
    if "stripe" in label:
        return "STRIPE_SECRET_KEY"
    if "aws" in label:
        if key is not None:
            return "AWS_SECRET_ACCESS_KEY" if "secret" in key.lower() else "AWS_ACCESS_KEY_ID"
        return "AWS_ACCESS_KEY_ID" if index == 0 else "AWS_SECRET_ACCESS_KEY"
    if "jwt" in label:
        return "JWT_SECRET"
    return None


def env_name_for(tree: ParsedSource, node: Any) -> str:
    """Environment variable that should hold the value of literal *node*."""
    name, kind, holder = ast_utils.binding_target(tree, node)
    value = node.value

    if kind == "argument":
        index = _argument_index(holder, node)
        provider = _provider_name(_call_label(holder), index, None)
        if provider:
            return provider
        if ast_utils.callee_name(holder) in DB_FACTORIES or _DB_LABEL_RE.search(_call_label(holder)):
            return "DATABASE_URL" if CONNECTION_STRING_RE.match(value) else "DATABASE_PASSWORD"

    if kind == "property":
        obj = tree.parent(holder)
        call = _object_call(tree, obj) if getattr(obj, "type", None) == "ObjectExpression" else None
        if call is not None:
            provider = _provider_name(_call_label(call), None, name)
            if provider:
                return provider
        if name and _PASSWORD_KEY_RE.search(name) and obj is not None and obj.type == "ObjectExpression":
            if _is_db_object(tree, obj):
                return "DATABASE_PASSWORD"

    if CONNECTION_STRING_RE.match(value) and not name:
        return "DATABASE_URL"
    if name and kind in {"declarator", "property", "assignment", "jsx"}:
        return to_env_name(name)
    if value.startswith(("sk_", "rk_")):
        return "STRIPE_SECRET_KEY"
    if value.startswith(("AKIA", "ASIA")):
        return "AWS_ACCESS_KEY_ID"
    return FALLBACK_NAME


def _env_fallback_left(tree: ParsedSource, node: Any) -> Any | None:
    """The env read in ``process.env.X || '<literal>'``, if that is the shape."""
    parent = tree.parent(node)
    if getattr(parent, "type", None) != "LogicalExpression" or parent.right is not node:
        return None
    if parent.operator not in {"||", "??"}:
        return None
    left = parent.left
    if left.type == "MemberExpression" and ast_utils.is_env_namespace(left.object):
        return parent
    return None


class HardcodedSecretsFixer(BaseFixer):
    """Moves hardcoded secrets into environment variables."""

    id = "hardcoded-secrets-fixer"
    issue_types = frozenset({rules.HARDCODED_SECRET})

    def can_fix(self, issue: Issue) -> bool:
        # Secrets embedded inside template text have no single literal to replace.
        return super().can_fix(issue) and issue.context.get("node_kind") != "template"

    def _locate(self, tree: ParsedSource, issue: Issue) -> Any | None:
        literals = [
            n for n in tree.nodes
            if ast_utils.is_string_literal(n) and should_inspect(tree, n)
        ]
        digest = issue.context.get("value_digest")
        if digest:
            matching = [n for n in literals if value_digest(n.value) == digest]
            found = ast_utils.find_near_line(
                matching, issue.line, issue.column, tolerance=LINE_TOLERANCE
            )
            if found is not None:
                return found
        return ast_utils.find_near_line(
            literals, issue.line, issue.column, tolerance=LINE_TOLERANCE
        )

    def fix(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        node = self._locate(tree, issue)
        if node is None:
            raise FixApplicationError(f"no string literal found near line {issue.line}")

        fallback = _env_fallback_left(tree, node)
        if fallback is not None:
            # Keep the env read, drop the hardcoded default.
            start, end = ast_utils.node_range(fallback)
            read = tree.text_of(fallback.left)
            env = ast_utils.property_name(fallback.left) or read
            edit = TextEdit(start, end, read)
        else:
            env = env_name_for(tree, node)
            read = f"{ENV_NAMESPACE}.{env}"
            if getattr(tree.parent(node), "type", None) == "JSXAttribute":
                read = "{" + read + "}"
            start, end = ast_utils.node_range(node)
            edit = TextEdit(start, end, read)

        explanation = (
            f"Moved hardcoded secret to environment variable {env}. "
            f"Set {env} in your environment (e.g. a .env file that is not committed)."
        )
        return FixOutcome((edit,), explanation, EDUCATION)
