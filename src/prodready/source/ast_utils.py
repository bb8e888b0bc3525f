"""Helpers over esprima's ESTree nodes.

Nodes are plain attribute bags; anything carrying a string ``type`` is a
node.  Missing attributes are read with ``getattr`` defaults throughout,
since optional ESTree fields are simply absent on some node classes.
"""

from __future__ import annotations

from typing import Any, Iterator

FUNCTION_TYPES = frozenset(
    {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}
)

_SKIP_KEYS = frozenset({"type", "loc", "range", "leadingComments", "trailingComments"})


def is_node(value: Any) -> bool:
    return isinstance(getattr(value, "type", None), str)


def iter_children(node: Any) -> Iterator[Any]:
    """Yield direct child nodes in source order."""
    children: list[Any] = []
    for key, value in vars(node).items():
        if key in _SKIP_KEYS or value is None:
            continue
        if is_node(value):
            children.append(value)
        elif isinstance(value, (list, tuple)):
            children.extend(v for v in value if is_node(v))
    children.sort(key=lambda c: node_range(c)[0])
    return iter(children)


def walk(root: Any) -> Iterator[tuple[Any, Any | None]]:
    """Pre-order walk yielding ``(node, parent)`` pairs."""
    stack: list[tuple[Any, Any | None]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        yield node, parent
        children = list(iter_children(node))
        for child in reversed(children):
            stack.append((child, node))


def walk_own(fn: Any) -> Iterator[Any]:
    """Walk a function's body without entering nested functions."""
    body = getattr(fn, "body", None)
    if body is None:
        return
    stack = [body]
    while stack:
        node = stack.pop()
        yield node
        if is_function(node):
            continue
        stack.extend(reversed(list(iter_children(node))))


# ── positions ───────────────────────────────────────────────────────


def node_range(node: Any) -> tuple[int, int]:
    rng = getattr(node, "range", None)
    if not rng:
        return (0, 0)
    return (int(rng[0]), int(rng[1]))


def node_line(node: Any) -> int:
    loc = getattr(node, "loc", None)
    start = getattr(loc, "start", None)
    return int(getattr(start, "line", 0) or 0)


def node_end_line(node: Any) -> int:
    loc = getattr(node, "loc", None)
    end = getattr(loc, "end", None)
    return int(getattr(end, "line", 0) or 0)


def node_column(node: Any) -> int | None:
    loc = getattr(node, "loc", None)
    start = getattr(loc, "start", None)
    col = getattr(start, "column", None)
    return int(col) if col is not None else None


def find_near_line(
    candidates: list[Any],
    line: int,
    column: int | None = None,
    *,
    tolerance: int = 1,
) -> Any | None:
    """Pick the node a line-addressed issue refers to.

    Preference: exact line and column, then exact line, then the closest
    line within *tolerance*.  Ties keep source order.
    """
    exact = [n for n in candidates if node_line(n) == line]
    if column is not None:
        for n in exact:
            if node_column(n) == column:
                return n
    if exact:
        return exact[0]
    near = [n for n in candidates if abs(node_line(n) - line) <= tolerance]
    if not near:
        return None
    return min(near, key=lambda n: abs(node_line(n) - line))


# ── node predicates ─────────────────────────────────────────────────


def is_function(node: Any) -> bool:
    return getattr(node, "type", None) in FUNCTION_TYPES


def is_async(fn: Any) -> bool:
    return bool(getattr(fn, "isAsync", False) or getattr(fn, "async", False))


def is_string_literal(node: Any) -> bool:
    return getattr(node, "type", None) == "Literal" and isinstance(
        getattr(node, "value", None), str
    )


def is_identifier(node: Any, name: str | None = None) -> bool:
    if getattr(node, "type", None) != "Identifier":
        return False
    return name is None or node.name == name


def property_name(member: Any) -> str | None:
    """Static property name of a ``MemberExpression`` (``a.b`` or ``a['b']``)."""
    prop = getattr(member, "property", None)
    if prop is None:
        return None
    if not getattr(member, "computed", False):
        return getattr(prop, "name", None)
    if is_string_literal(prop):
        return prop.value
    return None


def key_name(prop: Any) -> str | None:
    """Static key of an object ``Property`` or class member."""
    key = getattr(prop, "key", None)
    if key is None:
        return None
    if getattr(key, "type", None) == "Identifier" and not getattr(prop, "computed", False):
        return key.name
    if getattr(key, "type", None) == "Literal":
        value = getattr(key, "value", None)
        return str(value) if value is not None else None
    return None


def callee_name(call: Any) -> str | None:
    """Identifier name, or member property name, of a call's callee."""
    callee = getattr(call, "callee", None)
    if callee is None:
        return None
    if callee.type == "Identifier":
        return callee.name
    if callee.type == "MemberExpression":
        return property_name(callee)
    return None


def is_method_call(node: Any, *names: str) -> bool:
    if getattr(node, "type", None) != "CallExpression":
        return False
    callee = node.callee
    return callee.type == "MemberExpression" and property_name(callee) in names


def member_root(node: Any) -> Any:
    """Innermost object of a member/call chain (``a`` in ``a.b().c``)."""
    current = node
    while True:
        kind = getattr(current, "type", None)
        if kind == "MemberExpression":
            current = current.object
        elif kind == "CallExpression":
            current = current.callee
        else:
            return current


def static_path(node: Any) -> str | None:
    """Dotted path for a chain of identifiers (``process.env.KEY``)."""
    parts: list[str] = []
    current = node
    while getattr(current, "type", None) == "MemberExpression":
        name = property_name(current)
        if name is None:
            return None
        parts.append(name)
        current = current.object
    kind = getattr(current, "type", None)
    if kind == "Identifier":
        parts.append(current.name)
    elif kind == "MetaProperty":
        parts.append(f"{current.meta.name}.{current.property.name}")
    else:
        return None
    return ".".join(reversed(parts))


ENV_NAMESPACES = frozenset({"process.env", "import.meta.env"})


def is_env_namespace(node: Any) -> bool:
    return static_path(node) in ENV_NAMESPACES


def template_chunks(text: str, node: Any) -> list[str]:
    """Literal chunks of a ``TemplateLiteral``, sliced from the source text."""
    start, end = node_range(node)
    body_start, body_end = start + 1, end - 1
    chunks: list[str] = []
    cursor = body_start
    for expr in getattr(node, "expressions", None) or ():
        expr_start, expr_end = node_range(expr)
        opener = text.rfind("${", cursor, expr_start)
        chunks.append(text[cursor : opener if opener >= 0 else expr_start])
        closer = text.find("}", expr_end, body_end + 1)
        cursor = closer + 1 if closer >= 0 else expr_end
    chunks.append(text[cursor:body_end])
    return chunks


def unwrap_parens(
    text: str, start: int, end: int, *, bounds: tuple[int, int] | None = None
) -> tuple[int, int]:
    """Widen ``[start, end)`` over balanced parentheses hugging it in *text*.

    With *bounds* ``(lo, hi)`` the result never reaches outside ``[lo, hi)``.
    """
    lo, hi = bounds if bounds is not None else (0, len(text))
    while True:
        i = start - 1
        while i >= lo and text[i] in " \t\r\n":
            i -= 1
        j = end
        while j < hi and text[j] in " \t\r\n":
            j += 1
        if i >= lo and j < hi and text[i] == "(" and text[j] == ")":
            start, end = i, j + 1
            continue
        return start, end


def binding_target(parsed: Any, node: Any) -> tuple[str | None, str, Any | None]:
    """Describe where the value *node* flows.

    Returns ``(name, kind, holder)`` where *kind* is one of ``declarator``,
    ``property``, ``assignment``, ``argument``, ``jsx`` or ``other``.
    ``||``/``??``/``?:`` wrappers are looked through so that
    ``const key = process.env.KEY || 'sk_live_...'`` resolves to ``key``.
    """
    current = node
    parent = parsed.parent(current)
    while parent is not None and (
        parent.type == "LogicalExpression"
        or (parent.type == "ConditionalExpression" and parent.test is not current)
    ):
        current = parent
        parent = parsed.parent(current)

    if parent is None:
        return None, "other", None
    kind = parent.type
    if kind == "VariableDeclarator" and parent.init is current:
        name = parent.id.name if parent.id.type == "Identifier" else None
        return name, "declarator", parent
    if kind == "Property" and parent.value is current:
        return key_name(parent), "property", parent
    if kind == "AssignmentExpression" and parent.right is current:
        left = parent.left
        if left.type == "Identifier":
            return left.name, "assignment", parent
        if left.type == "MemberExpression":
            return property_name(left), "assignment", parent
        return None, "assignment", parent
    if kind in {"CallExpression", "NewExpression"} and any(
        a is current for a in parent.arguments
    ):
        return callee_name(parent), "argument", parent
    if kind == "JSXAttribute":
        attr = getattr(parent.name, "name", None)
        return attr if isinstance(attr, str) else None, "jsx", parent
    if kind == "JSXExpressionContainer":
        grand = parsed.parent(parent)
        if getattr(grand, "type", None) == "JSXAttribute":
            attr = getattr(grand.name, "name", None)
            return attr if isinstance(attr, str) else None, "property", grand
    return None, "other", parent


def function_name(parsed: Any, fn: Any) -> str | None:
    """Name of a function from its id, declarator, key or assignment target."""
    ident = getattr(fn, "id", None)
    if ident is not None and getattr(ident, "name", None):
        return ident.name
    parent = parsed.parent(fn)
    if parent is None:
        return None
    if parent.type == "VariableDeclarator" and parent.id.type == "Identifier":
        return parent.id.name
    if parent.type in {"Property", "MethodDefinition"}:
        return key_name(parent)
    if parent.type == "AssignmentExpression":
        left = parent.left
        if left.type == "Identifier":
            return left.name
        if left.type == "MemberExpression":
            return static_path(left) or property_name(left)
    return None
