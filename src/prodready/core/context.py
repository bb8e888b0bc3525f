"""Context builder — project facts from ``package.json`` plus per-file markers."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any

from prodready.model.context import Context, Route
from prodready.source import ast_utils
from prodready.source.parser import ParsedSource

_logger = logging.getLogger(__name__)

# First match wins.
_FRAMEWORKS = ("express", "koa", "fastify", "react", "vue", "angular")

ROUTE_METHODS = frozenset({"get", "post", "put", "patch", "delete", "all", "options", "head"})
_ROUTER_NAME_RE = re.compile(r"app|router|server|api|fastify", re.IGNORECASE)

_PAYMENT_PATH_RE = re.compile(r"payment|billing|checkout|stripe", re.IGNORECASE)
_AUTH_PATH_RE = re.compile(r"auth|login|session|passport", re.IGNORECASE)
_PAYMENT_MODULES = frozenset({"stripe", "braintree", "paypal-rest-sdk", "@paypal/checkout-server-sdk"})
_AUTH_MODULES = frozenset({"passport", "jsonwebtoken", "bcrypt", "bcryptjs", "express-session"})
_USER_DATA_RE = re.compile(r"req\.body|email|password|address|phone", re.IGNORECASE)


def read_package_json(root: Path) -> dict[str, Any] | None:
    path = root / "package.json"
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _logger.warning("%s: unreadable package.json: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def detect_framework(dependencies: tuple[str, ...]) -> str | None:
    for name in _FRAMEWORKS:
        if name in dependencies:
            return name
    if "@angular/core" in dependencies:
        return "angular"
    return None


def build_project_context(root: Path) -> Context:
    """Project-level Context; routes are added later by the runner."""
    pkg = read_package_json(root)
    if pkg is None:
        return Context()
    deps: list[str] = []
    for section in ("dependencies", "devDependencies"):
        value = pkg.get(section)
        if isinstance(value, dict):
            deps.extend(k for k in value if k not in deps)
    dependencies = tuple(deps)
    return Context(
        project_type="node",
        framework=detect_framework(dependencies),
        dependencies=dependencies,
    )


# ── per-file facts ──────────────────────────────────────────────────


def imported_modules(tree: ParsedSource) -> set[str]:
    """Specifiers of ``import ... from 'x'`` and ``require('x')``."""
    modules: set[str] = set()
    for node in tree.nodes:
        if node.type == "ImportDeclaration" and ast_utils.is_string_literal(node.source):
            modules.add(node.source.value)
        elif (
            node.type == "CallExpression"
            and ast_utils.is_identifier(node.callee, "require")
            and node.arguments
            and ast_utils.is_string_literal(node.arguments[0])
        ):
            modules.add(node.arguments[0].value)
    return modules


def _handler_name(tree: ParsedSource, node: Any) -> str:
    if node.type == "Identifier":
        return node.name
    if node.type == "MemberExpression":
        return ast_utils.static_path(node) or "anonymous"
    if ast_utils.is_function(node):
        ident = getattr(node, "id", None)
        return getattr(ident, "name", None) or "anonymous"
    if node.type == "CallExpression" and node.arguments:
        # asyncHandler(async (req, res) => ...)
        return _handler_name(tree, node.arguments[-1])
    return "anonymous"


def extract_routes(tree: ParsedSource, file_id: str) -> list[Route]:
    """``app.get('/path', handler)``-style registrations."""
    routes: list[Route] = []
    for call in tree.nodes_of_type("CallExpression"):
        callee = call.callee
        if callee.type != "MemberExpression":
            continue
        method = ast_utils.property_name(callee)
        if method not in ROUTE_METHODS or len(call.arguments) < 2:
            continue
        path = call.arguments[0]
        if not ast_utils.is_string_literal(path) or not path.value.startswith("/"):
            continue
        root = ast_utils.member_root(callee)
        if not ast_utils.is_identifier(root) or not _ROUTER_NAME_RE.search(root.name):
            continue
        routes.append(
            Route(
                method=method.upper(),
                path=path.value,
                handler=_handler_name(tree, call.arguments[-1]),
                file=file_id,
                line=ast_utils.node_line(call),
            )
        )
    return routes


def file_context(project: Context, tree: ParsedSource | None, file_id: str) -> Context:
    """Derive the Context one file is analyzed under."""
    modules = imported_modules(tree) if tree is not None else set()
    text = tree.text if tree is not None else ""
    return replace(
        project,
        is_payment_code=bool(_PAYMENT_PATH_RE.search(file_id)) or bool(modules & _PAYMENT_MODULES),
        is_authentication_code=bool(_AUTH_PATH_RE.search(file_id)) or bool(modules & _AUTH_MODULES),
        has_user_data=bool(_USER_DATA_RE.search(text)),
    )
