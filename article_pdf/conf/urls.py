from django.urls import include, path

urlpatterns = [
    path("article-pdf/", include("article_pdf.urls")),
]
