"""
Integration tests for the article PDF endpoints.
"""

import json

import pytest
from django.test import Client

from article_pdf.rendering.engine import WEASYPRINT_AVAILABLE
from article_pdf.tokens import create_token

pytestmark = [pytest.mark.integration, pytest.mark.django_db]

AJAX_URL = "/article-pdf/ajax/"

requires_weasyprint = pytest.mark.skipif(
    not WEASYPRINT_AVAILABLE, reason="WeasyPrint not available"
)


def _post(client, **data):
    response = client.post(AJAX_URL, data)
    return response, json.loads(response.content)


def test_unknown_action_is_rejected():
    response, payload = _post(Client(), action="delete_everything", post_id="1")

    assert response.status_code == 400
    assert payload == {
        "success": False,
        "data": {"message": "Unknown action.", "code": "unknown_action"},
    }


def test_ajax_endpoint_only_accepts_post():
    assert Client().get(AJAX_URL).status_code == 405


def test_invalid_nonce_is_rejected(make_post):
    post = make_post()

    response, payload = _post(
        Client(), action="generate_pdf", post_id=str(post.pk), nonce="forged"
    )

    assert response.status_code == 403
    assert payload["success"] is False
    assert payload["data"]["message"] == "Security check failed."


def test_anonymous_token_is_rejected_for_logged_in_user(make_post, author):
    post = make_post()
    client = Client()
    client.force_login(author)

    _, payload = _post(client, action="generate_pdf", post_id=str(post.pk), nonce=create_token())

    assert payload["data"]["code"] == "security_check_failed"


def test_nonexistent_post_returns_not_found():
    response, payload = _post(
        Client(), action="generate_pdf", post_id="9999", nonce=create_token()
    )

    assert response.status_code == 404
    assert payload["success"] is False
    assert payload["data"]["message"] == "Post not found."


def test_non_numeric_post_id_is_invalid():
    response, payload = _post(
        Client(), action="generate_pdf", post_id="42abc", nonce=create_token()
    )

    assert response.status_code == 400
    assert payload["data"]["message"] == "Invalid post ID."


def test_draft_post_is_unavailable(make_post, author):
    post = make_post(status="draft")
    client = Client()
    client.force_login(author)

    response, payload = _post(
        client, action="generate_pdf", post_id=str(post.pk), nonce=create_token(actor=author)
    )

    assert response.status_code == 403
    assert payload["data"]["message"] == "This post is not available for PDF generation."


def test_document_view_rejects_invalid_nonce(make_post):
    post = make_post()

    response = Client().get(f"/article-pdf/{post.pk}/", {"nonce": "forged"})

    assert response.status_code == 403
    assert json.loads(response.content)["data"]["code"] == "security_check_failed"


@requires_weasyprint
def test_generate_pdf_for_published_post(make_post, storage_root):
    post = make_post()

    response, payload = _post(
        Client(), action="generate_pdf", post_id=str(post.pk), nonce=create_token()
    )

    assert response.status_code == 200
    assert payload["success"] is True
    assert payload["data"]["message"] == "PDF generated successfully."
    assert payload["data"]["pdf_url"].endswith("Hello-World.pdf")
    assert payload["data"]["pdf_url"] == (
        "https://example.org/media/uploads/pdfs/Hello-World.pdf"
    )
    written = storage_root / "uploads" / "pdfs" / "Hello-World.pdf"
    assert written.read_bytes().startswith(b"%PDF")


@requires_weasyprint
def test_generate_pdf_for_logged_in_author(make_post, author, storage_root):
    post = make_post(title="Second Post")
    client = Client()
    client.force_login(author)

    _, payload = _post(
        client, action="generate_pdf", post_id=str(post.pk), nonce=create_token(actor=author)
    )

    assert payload["success"] is True
    assert payload["data"]["pdf_url"].endswith("Second-Post.pdf")


@requires_weasyprint
def test_document_view_inline_and_download(make_post, storage_root):
    post = make_post()
    client = Client()
    token = create_token()

    inline = client.get(f"/article-pdf/{post.pk}/", {"nonce": token})
    download = client.get(f"/article-pdf/{post.pk}/", {"nonce": token, "download": "1"})

    assert inline.status_code == 200
    assert inline["Content-Type"] == "application/pdf"
    assert inline["Content-Disposition"] == 'inline; filename="Hello-World.pdf"'
    assert inline.content.startswith(b"%PDF")
    assert download["Content-Disposition"] == 'attachment; filename="Hello-World.pdf"'
    assert not (storage_root / "uploads" / "pdfs").exists()
