"""Result envelope returned by the account and editor flows.

Flows never raise for expected failures (bad credentials, unknown refs,
validation). They return ``ServiceResult(ok=False, error=...)`` and the
caller decides how to present it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Machine-readable ``code`` plus a message fit for the end user."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one flow operation.

    ``op`` names the operation, ``data`` is its payload and ``warnings``
    collects problems that did not stop it (a failed autosave, say).
    ``meta`` holds counts and other extras shown only in verbose output.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail or {}),
            warnings=warnings or [],
        )
