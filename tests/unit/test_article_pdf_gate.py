"""
Unit tests for the access and request gate.
"""

from dataclasses import replace
from types import SimpleNamespace

import pytest

from article_pdf.content import ContentStatus
from article_pdf.errors import DependencyMissingError, RenderError
from article_pdf.gate import ArticlePdfGate, GenerationRequest, Outcome, parse_post_id
from article_pdf.generator import RenderResult
from article_pdf.rendering.sinks import OutputArtifact, Sink, output_dir
from article_pdf.tokens import create_token

pytestmark = pytest.mark.unit


class _Repository:
    def __init__(self, *items):
        self.items = {item.id: item for item in items}
        self.lookups = []

    def get(self, item_id):
        self.lookups.append(item_id)
        return self.items.get(item_id)


class _GeneratorFactory:
    """Records renderer construction; returns a canned result."""

    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def __call__(self, site):
        if self.exc is not None:
            raise self.exc
        factory = self

        class _Generator:
            def generate(self, item, *, sink):
                factory.calls.append((site, item, sink))
                return factory.result

        return _Generator()


def _file_result(title="Hello-World"):
    path = output_dir() / f"{title}.pdf"
    return RenderResult(
        artifact=OutputArtifact(
            sink=Sink.FILE, filename=path.name, pdf_bytes=b"%PDF-1.7", path=path, page_count=1
        )
    )


@pytest.fixture
def repository(article):
    draft = replace(article, id=43, status=ContentStatus.DRAFT, is_public=False)
    private = replace(article, id=44, status=ContentStatus.PRIVATE, is_public=False)
    hidden = replace(article, id=45, is_public=False)
    return _Repository(article, draft, private, hidden)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("42", 42),
        (" 7 ", 7),
        (42, 42),
        ("0", None),
        (0, None),
        ("-3", None),
        (-3, None),
        ("4.2", None),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        ("42abc", None),
    ],
)
def test_parse_post_id(raw, expected):
    assert parse_post_id(raw) == expected


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_invalid_token_never_reaches_renderer(repository, token):
    factory = _GeneratorFactory(result=_file_result())
    gate = ArticlePdfGate(repository, factory)

    outcome = gate.handle(GenerationRequest(post_id="42", token=token))

    assert outcome.to_payload() == {
        "success": False,
        "data": {"message": "Security check failed.", "code": "security_check_failed"},
    }
    assert outcome.status_code == 403
    assert outcome.artifact is None
    assert factory.calls == []
    assert repository.lookups == []


def test_token_for_another_user_is_rejected(repository):
    factory = _GeneratorFactory(result=_file_result())
    token = create_token(actor=SimpleNamespace(pk=5, is_authenticated=True))

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id="42", token=token)
    )

    assert outcome.code == "security_check_failed"
    assert factory.calls == []


@pytest.mark.parametrize("post_id", ["abc", "", None, "0", "-1", "1.5"])
def test_malformed_post_id_is_rejected(repository, post_id):
    factory = _GeneratorFactory(result=_file_result())

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id=post_id, token=create_token())
    )

    assert outcome.to_payload()["data"]["message"] == "Invalid post ID."
    assert outcome.code == "invalid_post_id"
    assert outcome.status_code == 400
    assert factory.calls == []
    assert repository.lookups == []


def test_unknown_post_is_not_found(repository):
    factory = _GeneratorFactory(result=_file_result())

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id="9999", token=create_token())
    )

    assert outcome.to_payload() == {
        "success": False,
        "data": {"message": "Post not found.", "code": "post_not_found"},
    }
    assert outcome.status_code == 404
    assert repository.lookups == [9999]
    assert factory.calls == []


@pytest.mark.parametrize("post_id", ["43", "44", "45"])
@pytest.mark.parametrize(
    "actor",
    [None, SimpleNamespace(pk=1, is_authenticated=True, is_superuser=True)],
)
def test_unavailable_posts_are_rejected_for_every_actor(repository, post_id, actor):
    factory = _GeneratorFactory(result=_file_result())

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id=post_id, token=create_token(actor=actor), actor=actor)
    )

    assert outcome.to_payload()["data"]["message"] == (
        "This post is not available for PDF generation."
    )
    assert outcome.code == "post_unavailable"
    assert factory.calls == []


def test_published_post_is_rendered(repository, article, site):
    factory = _GeneratorFactory(result=_file_result())

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id="42", token=create_token())
    )
    payload = outcome.to_payload()

    assert outcome.success
    assert outcome.status_code == 200
    assert payload["success"] is True
    assert payload["data"]["message"] == "PDF generated successfully."
    assert payload["data"]["pdf_url"].endswith("Hello-World.pdf")
    assert payload["data"]["pdf_url"] == "https://example.org/media/uploads/pdfs/Hello-World.pdf"
    assert set(payload["data"]) == {"pdf_url", "message"}

    (called_site, called_item, called_sink) = factory.calls[0]
    assert called_site == site
    assert called_item == article
    assert called_sink == Sink.FILE


def test_public_entry_point_applies_same_checks(repository):
    factory = _GeneratorFactory(result=_file_result())
    gate = ArticlePdfGate(repository, factory)
    token = create_token()

    for post_id in ["42", "43", "9999", "abc"]:
        public = gate.handle_public(GenerationRequest(post_id=post_id, token=token))
        private = gate.handle(GenerationRequest(post_id=post_id, token=token))
        assert public.to_payload() == private.to_payload()


def test_render_failure_becomes_failure_payload(repository):
    factory = _GeneratorFactory(result=RenderResult(error=RenderError("disk full")))

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id="42", token=create_token())
    )

    assert outcome.to_payload() == {
        "success": False,
        "data": {"message": "disk full", "code": "pdf_generation_error"},
    }
    assert outcome.status_code == 500
    assert outcome.artifact is None


def test_unexpected_renderer_exception_is_contained(repository):
    factory = _GeneratorFactory(exc=RuntimeError("unexpected"))

    outcome = ArticlePdfGate(repository, factory).handle(
        GenerationRequest(post_id="42", token=create_token())
    )

    assert outcome.code == "pdf_generation_error"
    assert outcome.message == "unexpected"


def test_repository_failure_is_contained():
    class _BrokenRepository:
        def get(self, item_id):
            raise RuntimeError("database is locked")

    factory = _GeneratorFactory(result=_file_result())

    outcome = ArticlePdfGate(_BrokenRepository(), factory).handle(
        GenerationRequest(post_id="42", token=create_token())
    )

    assert outcome.success is False
    assert outcome.status_code == 500
    assert outcome.code == "pdf_generation_error"
    assert outcome.message == "Failed to generate the PDF."
    assert factory.calls == []


def test_missing_dependency_hides_detail_unless_exposed(settings, repository):
    factory = _GeneratorFactory(exc=DependencyMissingError("WeasyPrint is not installed."))
    article_pdf_settings = dict(settings.ARTICLE_PDF)
    article_pdf_settings["expose_errors"] = False
    settings.ARTICLE_PDF = article_pdf_settings
    gate = ArticlePdfGate(repository, factory)

    outcome = gate.handle(GenerationRequest(post_id="42", token=create_token()))
    assert outcome.status_code == 503
    assert outcome.code == "dependency_missing"
    assert outcome.message == "The PDF rendering engine is not available."

    article_pdf_settings["expose_errors"] = True
    settings.ARTICLE_PDF = dict(article_pdf_settings)
    outcome = gate.handle(GenerationRequest(post_id="42", token=create_token()))
    assert outcome.message == "WeasyPrint is not installed."


def test_outcome_payload_shapes():
    success = Outcome(success=True, message="ok", locator="/media/x.pdf")
    assert success.to_payload() == {
        "success": True,
        "data": {"pdf_url": "/media/x.pdf", "message": "ok"},
    }
    assert success.code is None


def test_rejections_are_audited(caplog, repository):
    token = "garbage-token-value"
    with caplog.at_level("INFO", logger="article_pdf.audit"):
        ArticlePdfGate(repository, _GeneratorFactory()).handle(
            GenerationRequest(post_id="42", token=token)
        )

    records = [r for r in caplog.records if r.name == "article_pdf.audit"]
    assert records
    assert "auth.token.invalid" in records[-1].getMessage()
    assert token not in records[-1].getMessage()
