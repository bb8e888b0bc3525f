"""Hardcoded-secrets detector.

Each string literal (or template literal) yields at most one issue.  A
literal is reported when it has a known credential shape, when it is a
connection string carrying a password, or when it is bound to a
secret-sounding name and does not look like a placeholder.
"""

from __future__ import annotations

import hashlib
import math
import re
from collections import Counter
from typing import Any

from prodready import rules
from prodready.analyzers import is_source_file, is_test_file
from prodready.model import Category, Severity
from prodready.model.context import Context
from prodready.model.issue import FixRef, Issue, Location, make_fingerprint, make_issue_id
from prodready.source import ast_utils
from prodready.source.parser import ParsedSource

# ── name patterns ───────────────────────────────────────────────────

SECRET_NAME_RE = re.compile(
    r"api[_-]?key|access[_-]?key|secret|passw(?:or)?d|pwd|token|bearer"
    r"|private[_-]?key|priv[_-]?key|credential|auth[_-]?key|db[_-]?pass",
    re.IGNORECASE,
)

# Names that describe a secret rather than hold one.
_DESCRIPTIVE_NAME_RE = re.compile(
    r"(?:url|uri|endpoint|path|field|label|name|type|header|length|count"
    r"|regex|pattern|prefix|message|msg|placeholder|hint|policy)$",
    re.IGNORECASE,
)

# ── value patterns ──────────────────────────────────────────────────

_KNOWN_SHAPES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^sk_live_[0-9A-Za-z]{4,}"), "Stripe production API key"),
    (re.compile(r"^sk_test_[0-9A-Za-z]{4,}"), "Stripe test API key"),
    (re.compile(r"^rk_(?:live|test)_[0-9A-Za-z]{4,}"), "Stripe restricted key"),
    (re.compile(r"^gh[pousr]_[0-9A-Za-z]{4,}"), "GitHub token"),
    (re.compile(r"^github_pat_[0-9A-Za-z_]{20,}"), "GitHub token"),
    (re.compile(r"xox[baprs]-[0-9A-Za-z-]{8,}"), "Slack token"),
    (re.compile(r"^(?:AKIA|ASIA)[0-9A-Z]{16}$"), "AWS access key"),
    (re.compile(r"-----BEGIN (?:[A-Z]+ )*PRIVATE KEY-----"), "private key"),
    (re.compile(r"^AIza[0-9A-Za-z_-]{35}$"), "Google API key"),
    (re.compile(r"^SG\.[0-9A-Za-z_-]{16,}\.[0-9A-Za-z_-]{16,}$"), "SendGrid API key"),
    (
        re.compile(r"^eyJ[0-9A-Za-z_-]{10,}\.[0-9A-Za-z_-]{10,}\.[0-9A-Za-z_-]{10,}$"),
        "JSON Web Token",
    ),
)

CONNECTION_STRING_RE = re.compile(
    r"^[a-z][a-z0-9+.-]*://(?P<user>[^:/@\s]*):(?P<password>[^@\s]+)@", re.IGNORECASE
)

PLACEHOLDER_RE = re.compile(
    r"your[_-]?.*[_-]?here|replace[_-]?(?:with|me)|<[^>]*>|x{3,}|\*{3,}"
    r"|placeholder|example|changeme|change[_-]me|dummy|\$\{[^}]*\}"
    r"|%\([^)]*\)s|\{\{[^}]*\}\}|^(?:password|secret|token|test)$",
    re.IGNORECASE,
)

_PUBLIC_PREFIXES = ("pk_",)
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
_URL_OR_PATH_RE = re.compile(r"^(?:[a-z][a-z0-9+.-]*://|/|\./|\.\./|~/)", re.IGNORECASE)
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]{32,}={0,2}$")
_WHITESPACE_RE = re.compile(r"\s")
_PRODUCTION_RE = re.compile(r"live|prod", re.IGNORECASE)

MIN_SECRET_LENGTH = 6
MIN_RANDOM_LENGTH = 20
MIN_ENTROPY = 3.5

IMPACT = "Exposed secrets can be stolen and used to access your systems"
EDUCATION = (
    "Never commit secrets to source control. Use environment variables or "
    "secret management services."
)


def shannon_entropy(value: str) -> float:
    if not value:
        return 0.0
    counts = Counter(value)
    total = len(value)
    return -sum((c / total) * math.log2(c / total) for c in counts.values())


def is_placeholder(value: str) -> bool:
    return bool(PLACEHOLDER_RE.search(value))


def looks_random(value: str) -> bool:
    """Long, whitespace-free, digit-bearing and high-entropy, or base64."""
    if len(value) < MIN_RANDOM_LENGTH or _WHITESPACE_RE.search(value):
        return False
    if _UUID_RE.match(value) or _URL_OR_PATH_RE.match(value):
        return False
    if not re.search(r"[0-9]", value):
        return False
    if _BASE64_RE.match(value) and re.search(r"[A-Za-z]", value):
        return True
    mixed_case = re.search(r"[a-z]", value) and re.search(r"[A-Z]", value)
    return bool(mixed_case) and shannon_entropy(value) >= MIN_ENTROPY


def known_shape(value: str) -> str | None:
    for pattern, label in _KNOWN_SHAPES:
        if pattern.search(value):
            return label
    return None


def is_secret_name(name: str | None) -> bool:
    if not name:
        return False
    return bool(SECRET_NAME_RE.search(name)) and not _DESCRIPTIVE_NAME_RE.search(name)


def secret_label(name: str | None, value: str) -> str:
    shape = known_shape(value)
    if shape:
        return shape
    lowered = (name or "").lower()
    if "api" in lowered and "key" in lowered:
        return "API key"
    if "pass" in lowered or "pwd" in lowered:
        return "password"
    if "token" in lowered:
        return "token"
    if "private" in lowered and "key" in lowered:
        return "private key"
    return "secret"


def classify(value: str, name: str | None) -> str | None:
    """Return a label when *value* (bound to *name*) is a hardcoded secret."""
    if len(value) < MIN_SECRET_LENGTH or value.startswith(_PUBLIC_PREFIXES):
        return None
    conn = CONNECTION_STRING_RE.match(value)
    if conn:
        return None if is_placeholder(conn.group("password")) else "connection"
    if is_placeholder(value):
        return None
    shape = known_shape(value)
    if shape:
        return shape
    if looks_random(value):
        return secret_label(name, value)
    if (
        is_secret_name(name)
        and not _WHITESPACE_RE.search(value)
        and not _URL_OR_PATH_RE.match(value)
    ):
        return secret_label(name, value)
    return None


def is_production(value: str, name: str | None) -> bool:
    if "PRIVATE KEY" in value and "BEGIN" in value:
        return True
    return bool(_PRODUCTION_RE.search(value) or (name and _PRODUCTION_RE.search(name)))


def value_digest(value: str) -> str:
    """Short hash identifying a literal without storing the secret itself."""
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def _is_module_specifier(node: Any, parent: Any) -> bool:
    kind = getattr(parent, "type", None)
    if kind in {"ImportDeclaration", "ExportNamedDeclaration", "ExportAllDeclaration"}:
        return getattr(parent, "source", None) is node
    if kind == "CallExpression":
        callee = parent.callee
        return ast_utils.is_identifier(callee, "require") or callee.type == "Import"
    return False


def should_inspect(tree: ParsedSource, node: Any) -> bool:
    parent = tree.parent(node)
    kind = getattr(parent, "type", None)
    if _is_module_specifier(node, parent):
        return False
    if kind in {"Property", "MethodDefinition"} and getattr(parent, "key", None) is node:
        return False
    if kind == "MemberExpression" and parent.property is node:
        return False  # computed key, e.g. process.env['API_KEY'] or obj['token']
    if kind == "ExpressionStatement" and getattr(parent, "directive", None):
        return False
    return True


class HardcodedSecretsAnalyzer:
    """Detects API keys, passwords and tokens embedded in source text."""

    id = rules.HARDCODED_SECRET
    name = "Hardcoded Secrets Detector"
    category = Category.SECURITY
    version = "1.1.0"

    def should_run(self, file_id: str, context: Context) -> bool:
        return is_source_file(file_id) and not is_test_file(file_id)

    def analyze(self, tree: ParsedSource, context: Context, file_id: str) -> list[Issue]:
        issues: list[Issue] = []
        for node in tree.nodes:
            if ast_utils.is_string_literal(node):
                issue = self._check_literal(tree, node, file_id)
            elif node.type == "TemplateLiteral":
                issue = self._check_template(tree, node, file_id)
            else:
                continue
            if issue is not None:
                issues.append(issue)
        return issues

    def _check_literal(self, tree: ParsedSource, node: Any, file_id: str) -> Issue | None:
        if not should_inspect(tree, node):
            return None
        value = node.value
        name, kind, _ = ast_utils.binding_target(tree, node)
        label = classify(value, name)
        if label is None:
            return None

        if label == "connection":
            message = "Password in connection string"
        elif kind == "property":
            message = f"Hardcoded secret in config: {label}"
        elif kind == "declarator":
            message = f"Hardcoded secret: {label}"
        else:
            message = "Hardcoded API key or secret detected"
        return self._issue(tree, node, file_id, message, value, name, kind)

    def _check_template(self, tree: ParsedSource, node: Any, file_id: str) -> Issue | None:
        name, _, _ = ast_utils.binding_target(tree, node)
        for chunk in ast_utils.template_chunks(tree.text, node):
            chunk = chunk.strip()
            if not chunk:
                continue
            if CONNECTION_STRING_RE.match(chunk) or known_shape(chunk):
                if is_placeholder(chunk):
                    continue
                return self._issue(
                    tree, node, file_id, "Potential secret in template literal",
                    chunk, name, "template",
                )
        return None

    def _issue(
        self,
        tree: ParsedSource,
        node: Any,
        file_id: str,
        message: str,
        value: str,
        name: str | None,
        kind: str,
    ) -> Issue:
        critical = is_production(value, name)
        line = ast_utils.node_line(node)
        column = ast_utils.node_column(node)
        return Issue(
            id=make_issue_id(rules.HARDCODED_SECRET, file_id, line, column),
            type=rules.HARDCODED_SECRET,
            severity=Severity.CRITICAL if critical else Severity.HIGH,
            category=self.category,
            location=Location(file=file_id, line=line, column=column),
            message=f"{message} (production environment!)" if critical else message,
            impact=IMPACT,
            educational_content=EDUCATION,
            fix=FixRef("Move secret to environment variable", fixer_id=rules.HARDCODED_SECRET),
            context={
                "binding_name": name,
                "node_kind": kind,
                "value_digest": value_digest(value),
            },
            fingerprint=make_fingerprint(
                rules.HARDCODED_SECRET, file_id, line, value_digest(value)
            ),
        )
