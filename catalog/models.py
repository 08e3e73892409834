from django.db import models


class Product(models.Model):
    id          = models.BigAutoField(primary_key=True)
    name        = models.CharField(max_length=100)
    code        = models.CharField(max_length=50, unique=True)
    description = models.TextField(null=True, blank=True)
    category    = models.CharField(max_length=100, null=True, blank=True)
    unit_price  = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    is_active   = models.BooleanField(default=True)
    created_at  = models.DateTimeField(auto_now_add=True)
    updated_at  = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} [{self.code}]"
