"""Tests for AccountService — registration, login and the reset-code lifecycle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pluggy
import pytest
from sqlalchemy.exc import IntegrityError

from mindmapctl.infrastructure.workspace import Workspace
from mindmapctl.services.accounts import AccountService
from tests.conftest import FAST_HASHER, run

hookimpl = pluggy.HookimplMarker("mindmapctl")

TEN_MINUTES = timedelta(minutes=10)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(workspace: Workspace, clock: FakeClock) -> AccountService:
    return AccountService(workspace, hasher=FAST_HASHER, clock=clock)


class TestRegister:
    def test_creates_account(self, service: AccountService) -> None:
        assert run(service.register("a@x.com", "Secret123!", "Ada")) is True
        account = service.store.find_account("a@x.com")
        assert account is not None
        assert account.display_name == "Ada"
        assert account.password_hash != "Secret123!"

    def test_duplicate_normalized_email(self, service: AccountService) -> None:
        assert run(service.register("a@x.com", "Secret123!"))
        assert run(service.register("  A@X.COM ", "Other456?")) is False
        assert service.store.count_accounts() == 1

    @pytest.mark.parametrize(("email", "password"), [("", "pw"), ("   ", "pw"), ("a@x.com", "")])
    def test_blank_input(self, service: AccountService, email: str, password: str) -> None:
        assert run(service.register(email, password)) is False
        assert service.store.count_accounts() == 0

    def test_insert_race_resolves_to_false(
        self, service: AccountService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _lose_race(_account: Any) -> None:
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(service.store, "insert_account", _lose_race)
        assert run(service.register("a@x.com", "Secret123!")) is False

    def test_post_register_hook(self, workspace: Workspace, service: AccountService) -> None:
        seen: list[tuple[str, str]] = []

        class Recorder:
            @hookimpl
            def post_register(self, account_id: str, email: str) -> None:
                seen.append((account_id, email))

        workspace.plugins.register_plugin(Recorder())
        run(service.register("A@x.com", "Secret123!"))
        assert [email for _, email in seen] == ["a@x.com"]

    def test_failing_hook_does_not_fail_registration(
        self, workspace: Workspace, service: AccountService
    ) -> None:
        class Broken:
            @hookimpl
            def post_register(self, account_id: str, email: str) -> None:
                raise RuntimeError("plugin bug")

        workspace.plugins.register_plugin(Broken())
        assert run(service.register("a@x.com", "Secret123!")) is True


class TestAuthenticate:
    def test_success_stamps_last_login(self, service: AccountService, clock: FakeClock) -> None:
        run(service.register("a@x.com", "Secret123!"))
        clock.advance(timedelta(hours=2))
        account = run(service.authenticate(" A@X.com", "Secret123!"))
        assert account is not None
        assert account.last_login_at == clock.now
        stored = service.store.find_account("a@x.com")
        assert stored is not None
        assert stored.last_login_at == clock.now

    def test_wrong_password_and_unknown_email_look_the_same(
        self, service: AccountService
    ) -> None:
        run(service.register("a@x.com", "Secret123!"))
        assert run(service.authenticate("a@x.com", "wrong")) is None
        assert run(service.authenticate("nobody@x.com", "Secret123!")) is None

    def test_exists_normalizes_email(self, service: AccountService) -> None:
        run(service.register("a@x.com", "Secret123!"))
        assert run(service.exists(" A@X.com "))
        assert not run(service.exists("nobody@x.com"))
        assert not run(service.exists("  "))


class TestPasswordReset:
    def test_unknown_email(self, service: AccountService) -> None:
        assert run(service.request_password_reset("nobody@x.com", TEN_MINUTES)) is None

    def test_code_shape_and_expiry(self, service: AccountService, clock: FakeClock) -> None:
        run(service.register("a@x.com", "Secret123!"))
        code = run(service.request_password_reset("a@x.com", TEN_MINUTES))
        assert code is not None
        assert len(code) == 6
        assert 100_000 <= int(code) <= 999_999
        (request,) = service.store.list_otps("a@x.com")
        assert request.expires_at == clock.now + TEN_MINUTES

    def test_expired_code_fails_and_lingers(
        self, service: AccountService, clock: FakeClock
    ) -> None:
        run(service.register("a@x.com", "Secret123!"))
        code = run(service.request_password_reset("a@x.com", TEN_MINUTES))
        clock.advance(TEN_MINUTES + timedelta(seconds=1))
        assert run(service.validate_otp("a@x.com", code)) is False
        assert len(service.store.list_otps("a@x.com")) == 1

    def test_code_for_other_email_fails(self, service: AccountService) -> None:
        run(service.register("a@x.com", "Secret123!"))
        run(service.register("b@x.com", "Secret123!"))
        code = run(service.request_password_reset("a@x.com", TEN_MINUTES))
        assert run(service.validate_otp("b@x.com", code)) is False

    def test_update_password(self, service: AccountService) -> None:
        run(service.register("a@x.com", "Secret123!"))
        assert run(service.update_password("a@x.com", "NewSecret456?")) is True
        assert run(service.authenticate("a@x.com", "Secret123!")) is None
        assert run(service.authenticate("a@x.com", "NewSecret456?")) is not None

    def test_update_password_unknown(self, service: AccountService) -> None:
        assert run(service.update_password("nobody@x.com", "NewSecret456?")) is False


class TestExampleScenario:
    def test_full_reset_flow(self, service: AccountService) -> None:
        assert run(service.register("a@x.com", "Secret123!"))
        assert run(service.authenticate("a@x.com", "wrong password")) is None

        c1 = run(service.request_password_reset("a@x.com", TEN_MINUTES))
        assert c1 is not None and len(c1) == 6
        c2 = run(service.request_password_reset("a@x.com", TEN_MINUTES))
        assert c2 is not None

        if c1 != c2:
            assert run(service.validate_otp("a@x.com", c1)) is False
        assert [r.code for r in service.store.list_otps("a@x.com")] == [c2]
        assert run(service.validate_otp("a@x.com", c2)) is True
        assert run(service.validate_otp("a@x.com", c2)) is False
