"""
URL patterns for article PDF endpoints.

Include them in a project URLconf:

    path("article-pdf/", include("article_pdf.urls"))
"""

from django.urls import path

from .views import AjaxActionView, ArticlePdfView

app_name = "article_pdf"

urlpatterns = [
    path("ajax/", AjaxActionView.as_view(), name="ajax"),
    path("<str:post_id>/", ArticlePdfView.as_view(), name="document"),
]
