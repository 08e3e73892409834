from django.db import models


class Worker(models.Model):
    id         = models.BigAutoField(primary_key=True)
    name       = models.CharField(max_length=100)
    cin        = models.CharField(max_length=8, unique=True)
    email      = models.EmailField(max_length=254, unique=True, null=True, blank=True)
    phone      = models.CharField(max_length=20, unique=True, null=True, blank=True)
    role       = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.cin})"


class ProductionLine(models.Model):
    id            = models.BigAutoField(primary_key=True)
    name          = models.CharField(max_length=100)
    description   = models.TextField(null=True, blank=True)
    location      = models.CharField(max_length=200, null=True, blank=True)
    capacity      = models.PositiveIntegerField(null=True, blank=True)
    target_output = models.PositiveIntegerField(null=True, blank=True)
    is_active     = models.BooleanField(default=True)
    created_at    = models.DateTimeField(auto_now_add=True)
    updated_at    = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["is_active"], name="roster_line_active_idx"),
        ]

    def __str__(self):
        return self.name
