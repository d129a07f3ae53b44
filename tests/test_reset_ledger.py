from datetime import timedelta

import pytest
from django.core import mail
from django.core.cache import cache
from django.utils import timezone

from social import reset_ledger
from social.exceptions import NotFound, Unauthorized, ValidationError
from social.models import User

pytestmark = pytest.mark.django_db

NEW_PASSWORD = "An0ther-Str0ng-One!"


def test_unknown_email_issues_nothing(alice):
    assert reset_ledger.issue_token("x@example.com") is None
    assert len(mail.outbox) == 0


def test_issue_token_requires_email():
    with pytest.raises(ValidationError):
        reset_ledger.issue_token("  ")


def test_issue_token_matches_email_case_insensitively(alice):
    token = reset_ledger.issue_token("ALICE@example.com")

    assert token is not None
    assert len(token) == reset_ledger.TOKEN_LENGTH
    assert cache.get(reset_ledger._key(token))["email"] == alice.email


def test_issue_token_sends_email(alice):
    token = reset_ledger.issue_token(alice.email)

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == [alice.email]
    assert token in mail.outbox[0].body


def test_token_resets_password_once(alice):
    token = reset_ledger.issue_token(alice.email)

    reset_ledger.consume_token(token, NEW_PASSWORD)

    assert User.objects.get(pk=alice.pk).check_password(NEW_PASSWORD)
    with pytest.raises(Unauthorized):
        reset_ledger.consume_token(token, "Y3t-Another-Pass!")
    assert User.objects.get(pk=alice.pk).check_password(NEW_PASSWORD)


def test_unknown_token_is_rejected():
    with pytest.raises(Unauthorized) as exc:
        reset_ledger.consume_token("not-a-token", NEW_PASSWORD)
    assert exc.value.message == "Invalid or expired reset token"


def test_expired_token_is_rejected_and_removed(alice, monkeypatch):
    token = reset_ledger.issue_token(alice.email)
    later = timezone.now() + reset_ledger.token_lifetime() + timedelta(seconds=1)
    monkeypatch.setattr("django.utils.timezone.now", lambda: later)

    with pytest.raises(Unauthorized) as exc:
        reset_ledger.consume_token(token, NEW_PASSWORD)

    assert exc.value.message == "Reset token has expired"
    assert cache.get(reset_ledger._key(token)) is None
    assert not User.objects.get(pk=alice.pk).check_password(NEW_PASSWORD)


def test_token_for_deleted_account(alice):
    token = reset_ledger.issue_token(alice.email)
    alice.delete()

    with pytest.raises(NotFound):
        reset_ledger.consume_token(token, NEW_PASSWORD)
    with pytest.raises(Unauthorized):
        reset_ledger.consume_token(token, NEW_PASSWORD)


def test_weak_password_keeps_token_usable(alice):
    token = reset_ledger.issue_token(alice.email)

    with pytest.raises(ValidationError):
        reset_ledger.consume_token(token, "123")

    reset_ledger.consume_token(token, NEW_PASSWORD)
    assert User.objects.get(pk=alice.pk).check_password(NEW_PASSWORD)


@pytest.mark.parametrize("token, password", [("", NEW_PASSWORD), ("abc", ""), (None, None)])
def test_consume_requires_token_and_password(token, password):
    with pytest.raises(ValidationError):
        reset_ledger.consume_token(token, password)


def test_lifetime_follows_settings(settings):
    settings.PARLEY_RESET_TOKEN_TTL_SECONDS = 120
    assert reset_ledger.token_lifetime() == timedelta(seconds=120)


def test_token_only_resets_its_own_account_among_case_twins(alice, make_user):
    twin = make_user("alice_twin", email="Alice@example.com")

    token = reset_ledger.issue_token(twin.email)
    reset_ledger.consume_token(token, NEW_PASSWORD)

    assert User.objects.get(pk=twin.pk).check_password(NEW_PASSWORD)
    assert not User.objects.get(pk=alice.pk).check_password(NEW_PASSWORD)
