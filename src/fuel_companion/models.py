from __future__ import annotations

from django.db import models


class StoredValue(models.Model):
    objects = models.Manager["StoredValue"]()

    key = models.CharField(max_length=200, unique=True)
    value = models.TextField()

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("key",)

    def __str__(self) -> str:
        return f"{self.key} ({len(self.value)} chars)"
