"""Context — read-only semantic facts consumed by detectors."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Route:
    """An HTTP route registration found in the project."""

    method: str
    path: str
    handler: str = ""
    file: str = ""
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "path": self.path,
            "handler": self.handler,
            "file": self.file,
            "line": self.line,
        }


@dataclass(frozen=True, slots=True)
class Context:
    """Project or per-file snapshot.

    Per-file contexts are derived from the project context with
    ``dataclasses.replace``; instances are never mutated.
    """

    project_type: str = "unknown"
    framework: str | None = None
    dependencies: tuple[str, ...] = ()
    routes: tuple[Route, ...] = field(default_factory=tuple)
    is_payment_code: bool = False
    is_authentication_code: bool = False
    has_user_data: bool = False

    def routes_for(self, file: str) -> tuple[Route, ...]:
        return tuple(r for r in self.routes if r.file == file)

    def has_dependency(self, name: str) -> bool:
        return name in self.dependencies

    def to_dict(self) -> dict:
        return {
            "projectType": self.project_type,
            "framework": self.framework,
            "dependencies": list(self.dependencies),
            "routes": [r.to_dict() for r in self.routes],
            "isPaymentCode": self.is_payment_code,
            "isAuthenticationCode": self.is_authentication_code,
            "hasUserData": self.has_user_data,
        }


EMPTY_CONTEXT = Context()
