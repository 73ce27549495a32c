from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class Post(models.Model):
    STATUS_CHOICES = [
        ("draft", "Draft"),
        ("publish", "Published"),
        ("private", "Private"),
        ("pending", "Pending review"),
    ]

    title = models.CharField(max_length=200)
    body = models.TextField(blank=True)
    author = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="posts"
    )
    published_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="draft")
    is_public = models.BooleanField(default=True)

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "posts"

    def __str__(self):
        return self.title
