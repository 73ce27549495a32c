"""
Unit tests for action-scoped authenticity tokens.
"""

from types import SimpleNamespace

import jwt
import pytest
from django.contrib.auth.models import AnonymousUser

from article_pdf.tokens import ANONYMOUS_USER_ID, create_token, default_action, verify_token

pytestmark = pytest.mark.unit


def _user(pk):
    return SimpleNamespace(pk=pk, is_authenticated=True)


def test_token_verifies_for_same_action_and_anonymous_actor():
    token = create_token()

    assert verify_token(token)
    assert verify_token(token, default_action(), AnonymousUser())


def test_token_payload_binds_action_and_user():
    token = create_token(actor=_user(7))
    payload = jwt.decode(token, options={"verify_signature": False})

    assert payload["act"] == "article_pdf_generate"
    assert payload["uid"] == 7
    assert payload["exp"] > payload["iat"]


def test_anonymous_token_is_bound_to_user_zero():
    payload = jwt.decode(create_token(), options={"verify_signature": False})
    assert payload["uid"] == ANONYMOUS_USER_ID


def test_token_rejected_for_other_action():
    token = create_token("other_action")

    assert not verify_token(token)
    assert verify_token(token, "other_action")


def test_token_rejected_for_other_user():
    token = create_token(actor=_user(7))

    assert verify_token(token, actor=_user(7))
    assert not verify_token(token, actor=_user(8))
    assert not verify_token(token, actor=AnonymousUser())


@pytest.mark.parametrize("token", [None, "", "not-a-token", 12345])
def test_missing_or_malformed_token_is_rejected(token):
    assert verify_token(token) is False


def test_tampered_token_is_rejected():
    token = create_token()
    forged = jwt.encode(
        jwt.decode(token, options={"verify_signature": False}),
        "another-secret",
        algorithm="HS256",
    )
    assert not verify_token(forged)


def test_expired_token_is_rejected(settings):
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings["tokens"] = {"lifetime_seconds": -60}
    settings.ARTICLE_PDF = article_pdf_settings

    assert not verify_token(create_token())


def test_configured_secret_is_used_for_signing(settings):
    token = create_token()
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings["tokens"] = {"secret": "rotated-secret"}
    settings.ARTICLE_PDF = article_pdf_settings

    assert not verify_token(token)
    assert verify_token(create_token())
