from django.core.management.base import BaseCommand, CommandError

from article_pdf.config import SiteConfig
from article_pdf.content import get_content_repository
from article_pdf.errors import DependencyMissingError
from article_pdf.gate import parse_post_id
from article_pdf.generator import PdfGenerator, local_now
from article_pdf.rendering.sinks import Sink, storage_url


class Command(BaseCommand):
    help = "Render an article to a PDF file under the storage area."

    def add_arguments(self, parser):
        parser.add_argument("post_id", help="Identifier of the article to render")
        parser.add_argument(
            "--output",
            "-o",
            default=None,
            help="Output file path (defaults to uploads/pdfs/<title>.pdf)",
        )
        parser.add_argument(
            "--timestamp",
            action="store_true",
            help="Append the current date and time to the default file name",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Render even if the article is not published and public",
        )

    def handle(self, *args, **options):
        post_id = parse_post_id(options["post_id"])
        if post_id is None:
            raise CommandError(f"Invalid post ID: {options['post_id']}")

        item = get_content_repository().get(post_id)
        if item is None:
            raise CommandError(f"Post not found: {post_id}")
        if not item.is_available and not options["force"]:
            raise CommandError(
                f"Post {post_id} is not available for PDF generation (use --force to override)"
            )

        site = SiteConfig.from_settings()
        generator = PdfGenerator(site)
        try:
            result = generator.generate(
                item,
                sink=Sink.FILE,
                path=options["output"],
                timestamp=local_now() if options["timestamp"] else None,
            )
        except DependencyMissingError as exc:
            raise CommandError(exc.message) from exc

        if not result.ok:
            raise CommandError(f"PDF generation failed: {result.error.message}")

        artifact = result.artifact
        self.stdout.write(
            self.style.SUCCESS(
                f"Rendered: {artifact.path} ({artifact.page_count} pages) "
                f"-> {storage_url(artifact.path, site.url)}"
            )
        )
