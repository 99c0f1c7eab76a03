"""Tests for registration, login and access tokens."""

from datetime import datetime, timedelta

import pytest

from tutorx.auth.accounts import AccountService, CredentialStore
from tutorx.errors import AuthFailure
from tutorx.storage.profile_store import InMemoryProfileStore

NOW = datetime(2026, 3, 10, 8, 0)


@pytest.fixture
def accounts(tmp_path):
    return AccountService(
        InMemoryProfileStore(),
        CredentialStore(tmp_path / "credentials"),
        secret_key="test-secret",
    )


class TestRegister:
    def test_creates_profile(self, accounts):
        profile = accounts.register(
            " Ada@Example.com ", "s3cret!", preferred_level="University", exam_type="A-Level", now=NOW
        )
        assert profile.email == "ada@example.com"
        assert profile.preferred_level == "University"
        assert profile.exam_type == "A-Level"
        assert profile.last_question_reset_date == NOW
        assert accounts.profiles.load("ada@example.com") == profile

    def test_password_is_hashed(self, accounts):
        accounts.register("ada@example.com", "s3cret!")
        stored = accounts.credentials.get_hash("ada@example.com")
        assert stored and stored != "s3cret!"

    def test_duplicate_rejected(self, accounts):
        accounts.register("ada@example.com", "s3cret!")
        with pytest.raises(AuthFailure):
            accounts.register("ADA@example.com", "another1")

    @pytest.mark.parametrize(
        "email,password", [("", "s3cret!"), ("not-an-email", "s3cret!"), ("a@b.com", "123")]
    )
    def test_invalid_input_rejected(self, accounts, email, password):
        with pytest.raises(AuthFailure):
            accounts.register(email, password)


class TestLogin:
    def test_success(self, accounts):
        accounts.register("ada@example.com", "s3cret!")
        assert accounts.authenticate("ADA@example.com", "s3cret!").email == "ada@example.com"

    def test_unknown_user_and_wrong_password_look_the_same(self, accounts):
        accounts.register("ada@example.com", "s3cret!")
        with pytest.raises(AuthFailure) as unknown:
            accounts.authenticate("ghost@example.com", "s3cret!")
        with pytest.raises(AuthFailure) as wrong:
            accounts.authenticate("ada@example.com", "wrong-pass")
        assert str(unknown.value) == str(wrong.value)
        assert "credentials" in str(wrong.value)

    def test_similar_addresses_are_separate_accounts(self, accounts):
        accounts.register("a!b@x.com", "secret1")
        accounts.register("a#b@x.com", "secret2")
        with pytest.raises(AuthFailure):
            accounts.authenticate("a_b@x.com", "secret1")
        assert accounts.authenticate("a#b@x.com", "secret2").email == "a#b@x.com"


class TestTokens:
    def test_round_trip(self, accounts):
        token = accounts.create_access_token("Ada@Example.com")
        assert accounts.decode_access_token(token) == "ada@example.com"

    def test_expired_token_rejected(self, accounts):
        token = accounts.create_access_token("ada@example.com", expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthFailure):
            accounts.decode_access_token(token)

    def test_foreign_signature_rejected(self, accounts, tmp_path):
        other = AccountService(
            InMemoryProfileStore(), CredentialStore(tmp_path / "other"), secret_key="other-secret"
        )
        with pytest.raises(AuthFailure):
            accounts.decode_access_token(other.create_access_token("ada@example.com"))

    def test_garbage_token_rejected(self, accounts):
        with pytest.raises(AuthFailure):
            accounts.decode_access_token("not.a.token")
