"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from mindmapctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="login", data={"id": "abc"})
        assert result.ok is True
        assert result.data == {"id": "abc"}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_helper(self) -> None:
        result = ServiceResult.failure(
            "register", "EMAIL_TAKEN", "Taken", detail={"email": "a@b.co"}, warnings=["w"]
        )
        assert result.ok is False
        assert result.op == "register"
        assert result.error == ServiceError(
            code="EMAIL_TAKEN", message="Taken", detail={"email": "a@b.co"}
        )
        assert result.warnings == ["w"]
        assert result.data == {}

    def test_failure_defaults(self) -> None:
        result = ServiceResult.failure("open", "NOT_FOUND", "Missing")
        assert result.error is not None
        assert result.error.detail == {}
        assert result.warnings == []

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="search", data={"keyword": "x"}, meta={"total": 2})
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["keyword"] == "x"
        assert parsed["meta"]["total"] == 2

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_model_copy_changes_op(self) -> None:
        result = ServiceResult(ok=True, op="apply_outline", data={"id": "d"})
        copied = result.model_copy(update={"op": "generate"})
        assert copied.op == "generate"
        assert copied.data == {"id": "d"}
