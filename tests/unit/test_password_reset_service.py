"""Unit tests for the three-step password recovery flow."""

from __future__ import annotations

from datetime import timedelta

import pytest

from errors import (
    IdentityVerificationFailedError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    InvalidOrExpiredTokenError,
    WeakPasswordError,
)
from infrastructure.delivery.log_only import LogDeliveryChannel
from services.password_reset_service import (
    IDENTITY_VERIFIED_MESSAGE,
    PASSWORD_RESET_MESSAGE,
    RESET_REQUESTED_MESSAGE,
    PasswordResetService,
)
from shared.crypto import hash_token


# ── Helpers ───────────────────────────────────────────────────────────────────


@pytest.fixture
async def user(auth_service):
    created, _ = await auth_service.register(
        email="a@x.com", password="pw123456", first_name="Ada", last_name="Byron"
    )
    return created


async def _issue_token(reset_service, email="a@x.com") -> str:
    result = await reset_service.request_reset(email)
    return result.delivery["resetToken"]


async def _verified(reset_service) -> tuple[str, str]:
    token = await _issue_token(reset_service)
    verified = await reset_service.verify_identity(token, "Ada", "Byron")
    return verified.user_id, verified.delivery["verificationCode"]


# ── request_reset ─────────────────────────────────────────────────────────────


class TestRequestReset:
    async def test_known_email_stores_digest_not_token(self, reset_service, repo, user, clock):
        result = await reset_service.request_reset("a@x.com")
        token = result.delivery["resetToken"]
        doc = repo.raw(user.id)

        assert result.message == RESET_REQUESTED_MESSAGE
        assert len(token) == 64
        assert doc["reset_token_hash"] == hash_token(token)
        assert token not in doc.values()
        assert doc["reset_token_expiry"] == clock.now + timedelta(hours=1)

    async def test_unknown_email_same_message_no_write(self, reset_service, repo, user):
        repo.calls.clear()
        result = await reset_service.request_reset("nobody@x.com")

        assert result.message == RESET_REQUESTED_MESSAGE
        assert result.delivery == {}
        assert "update_credential_fields" not in repo.calls

    async def test_email_lookup_is_case_sensitive(self, reset_service, repo, user):
        result = await reset_service.request_reset("A@X.COM")
        assert result.delivery == {}
        assert repo.raw(user.id)["reset_token_hash"] is None

    async def test_reissue_invalidates_previous_token(self, reset_service, user):
        first = await _issue_token(reset_service)
        second = await _issue_token(reset_service)

        with pytest.raises(InvalidOrExpiredTokenError):
            await reset_service.verify_identity(first, "Ada", "Byron")
        verified = await reset_service.verify_identity(second, "Ada", "Byron")
        assert verified.verified is True

    async def test_production_channel_keeps_token_out_of_result(
        self, repo, passwords, clock, user
    ):
        service = PasswordResetService(repo, passwords, LogDeliveryChannel(), clock=clock)
        result = await service.request_reset("a@x.com")

        assert result.delivery == {}
        assert repo.raw(user.id)["reset_token_hash"] is not None


# ── verify_identity ───────────────────────────────────────────────────────────


class TestVerifyIdentity:
    async def test_success_issues_code(self, reset_service, repo, user, clock):
        token = await _issue_token(reset_service)
        result = await reset_service.verify_identity(token, "Ada", "Byron")
        code = result.delivery["verificationCode"]
        doc = repo.raw(user.id)

        assert result.message == IDENTITY_VERIFIED_MESSAGE
        assert result.verified is True
        assert result.user_id == str(user.id)
        assert len(code) == 6 and code.isdigit()
        assert doc["verification_code_hash"] == hash_token(code)
        assert doc["verification_code_expiry"] == clock.now + timedelta(minutes=10)

    async def test_unknown_token(self, reset_service, user):
        with pytest.raises(InvalidOrExpiredTokenError):
            await reset_service.verify_identity("f" * 64, "Ada", "Byron")

    async def test_token_valid_until_expiry(self, reset_service, user, clock):
        token = await _issue_token(reset_service)
        clock.advance(hours=1, microseconds=-1)
        result = await reset_service.verify_identity(token, "Ada", "Byron")
        assert result.verified is True

    async def test_token_rejected_one_microsecond_after_expiry(self, reset_service, user, clock):
        token = await _issue_token(reset_service)
        clock.advance(hours=1, microseconds=1)
        with pytest.raises(InvalidOrExpiredTokenError):
            await reset_service.verify_identity(token, "Ada", "Byron")

    async def test_token_rejected_exactly_at_expiry(self, reset_service, user, clock):
        token = await _issue_token(reset_service)
        clock.advance(hours=1)
        with pytest.raises(InvalidOrExpiredTokenError):
            await reset_service.verify_identity(token, "Ada", "Byron")

    async def test_expired_and_wrong_token_are_indistinguishable(
        self, reset_service, user, clock
    ):
        token = await _issue_token(reset_service)
        with pytest.raises(InvalidOrExpiredTokenError) as wrong:
            await reset_service.verify_identity("0" * 64, "Ada", "Byron")
        clock.advance(hours=2)
        with pytest.raises(InvalidOrExpiredTokenError) as expired:
            await reset_service.verify_identity(token, "Ada", "Byron")
        assert wrong.value.to_dict() == expired.value.to_dict()

    @pytest.mark.parametrize(
        "first, last",
        [("Eve", "Byron"), ("Ada", "Lovelace"), ("", "")],
        ids=["wrong_first", "wrong_last", "blank"],
    )
    async def test_name_mismatch_keeps_token_usable(
        self, reset_service, repo, user, first, last
    ):
        token = await _issue_token(reset_service)
        with pytest.raises(IdentityVerificationFailedError):
            await reset_service.verify_identity(token, first, last)
        assert repo.raw(user.id)["verification_code_hash"] is None

        result = await reset_service.verify_identity(token, "Ada", "Byron")
        assert result.verified is True

    @pytest.mark.parametrize(
        "first, last",
        [("ada", "BYRON"), ("  Ada ", "Byron\t"), ("ＡＤＡ", "byron")],
        ids=["case", "whitespace", "fullwidth"],
    )
    async def test_names_compared_after_case_folding(self, reset_service, user, first, last):
        token = await _issue_token(reset_service)
        result = await reset_service.verify_identity(token, first, last)
        assert result.verified is True

    async def test_casefold_handles_sharp_s(self, auth_service, reset_service):
        await auth_service.register(
            email="s@x.com", password="pw123456", first_name="Jörg", last_name="Straße"
        )
        token = await _issue_token(reset_service, "s@x.com")
        result = await reset_service.verify_identity(token, "JÖRG", "STRASSE")
        assert result.verified is True


# ── reset_password ────────────────────────────────────────────────────────────


class TestResetPassword:
    async def test_success_clears_all_recovery_fields(
        self, reset_service, auth_service, repo, user, passwords
    ):
        user_id, code = await _verified(reset_service)
        message = await reset_service.reset_password(user_id, code, "newpw1234")
        doc = repo.raw(user.id)

        assert message == PASSWORD_RESET_MESSAGE
        for name in (
            "reset_token_hash",
            "reset_token_expiry",
            "verification_code_hash",
            "verification_code_expiry",
        ):
            assert doc[name] is None
        assert passwords.verify("newpw1234", doc["password_hash"])
        assert not passwords.verify("pw123456", doc["password_hash"])

    async def test_clearing_happens_in_the_password_write(self, reset_service, repo, user, mocker):
        user_id, code = await _verified(reset_service)
        spy = mocker.spy(repo, "update_credential_fields")
        await reset_service.reset_password(user_id, code, "newpw1234")

        spy.assert_called_once()
        fields = spy.call_args.args[1]
        assert "password_hash" in fields
        assert fields["reset_token_hash"] is None
        assert fields["verification_code_hash"] is None

    async def test_code_and_token_unusable_after_reset(self, reset_service, user):
        token = await _issue_token(reset_service)
        verified = await reset_service.verify_identity(token, "Ada", "Byron")
        code = verified.delivery["verificationCode"]
        await reset_service.reset_password(verified.user_id, code, "newpw1234")

        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(verified.user_id, code, "another1234")
        with pytest.raises(InvalidOrExpiredTokenError):
            await reset_service.verify_identity(token, "Ada", "Byron")

    async def test_login_uses_new_password_only(self, reset_service, auth_service, user):
        user_id, code = await _verified(reset_service)
        await reset_service.reset_password(user_id, code, "newpw1234")

        logged_in, _ = await auth_service.login(email="a@x.com", password="newpw1234")
        assert logged_in.id == user.id
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(email="a@x.com", password="pw123456")

    async def test_short_password_rejected_before_storage(self, reset_service, repo, user):
        user_id, code = await _verified(reset_service)
        before = dict(repo.raw(user.id))
        repo.calls.clear()

        with pytest.raises(WeakPasswordError):
            await reset_service.reset_password(user_id, code, "1234567")
        assert repo.calls == []
        assert repo.raw(user.id) == before

    async def test_wrong_code(self, reset_service, user):
        user_id, code = await _verified(reset_service)
        wrong = "100000" if code != "100000" else "100001"
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(user_id, wrong, "newpw1234")

    async def test_code_for_another_user(self, reset_service, auth_service, user):
        other, _ = await auth_service.register(
            email="b@x.com", password="pw123456", first_name="B", last_name="C"
        )
        _, code = await _verified(reset_service)
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(str(other.id), code, "newpw1234")

    @pytest.mark.parametrize("user_id", ["not-an-id", "0" * 24])
    async def test_unknown_user_id(self, reset_service, user, user_id):
        _, code = await _verified(reset_service)
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(user_id, code, "newpw1234")

    async def test_code_expires_after_ten_minutes(self, reset_service, user, clock):
        user_id, code = await _verified(reset_service)
        clock.advance(minutes=10, microseconds=1)
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(user_id, code, "newpw1234")

    async def test_code_valid_just_before_expiry(self, reset_service, user, clock):
        user_id, code = await _verified(reset_service)
        clock.advance(minutes=10, microseconds=-1)
        assert await reset_service.reset_password(user_id, code, "newpw1234") == PASSWORD_RESET_MESSAGE

    async def test_code_requires_outstanding_reset_token(self, reset_service, repo, user):
        user_id, code = await _verified(reset_service)
        await repo.update_credential_fields(user_id, {"reset_token_hash": None})
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(user_id, code, "newpw1234")

    async def test_code_dies_with_expired_reset_token(self, reset_service, repo, user, clock):
        token = await _issue_token(reset_service)
        clock.advance(minutes=59)
        verified = await reset_service.verify_identity(token, "Ada", "Byron")
        clock.advance(minutes=6)

        doc = repo.raw(user.id)
        assert doc["reset_token_expiry"] <= clock.now < doc["verification_code_expiry"]
        with pytest.raises(InvalidOrExpiredCodeError):
            await reset_service.reset_password(
                verified.user_id, verified.delivery["verificationCode"], "newpw1234"
            )
