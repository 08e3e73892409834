import logging

from factory_floor.exceptions import DuplicateValue, ProductNotFound
from .models import Product

logger = logging.getLogger(__name__)


class ProductService:
    """Service class for the product catalog."""

    NULLABLE_FIELDS = ("description", "category", "unit_price")

    @staticmethod
    def get_products():
        return Product.objects.order_by("name", "id")

    @staticmethod
    def _get(product_id: int) -> Product:
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise ProductNotFound()
        return product

    @classmethod
    def get_product(cls, product_id: int) -> Product:
        product = cls._get(product_id)
        product.recent_performance_records = list(
            product.performance_records.select_related("worker", "production_line")
            .order_by("-date", "-id")[:20]
        )
        return product

    @staticmethod
    def ensure_unique_code(code: str, exclude_id: int | None = None) -> None:
        queryset = Product.objects.filter(code=code)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        if queryset.exists():
            raise DuplicateValue("This product code is already in use", code="PRODUCT_CODE_EXISTS")

    @classmethod
    def create_product(cls, data: dict) -> Product:
        cls.ensure_unique_code(data["code"])
        product = Product.objects.create(
            name=data["name"],
            code=data["code"],
            description=data.get("description") or None,
            category=data.get("category") or None,
            unit_price=data.get("unit_price"),
        )
        logger.info("Created product %s (%s)", product.pk, product.code)
        return product

    @classmethod
    def update_product(cls, product_id: int, changes: dict) -> Product:
        """Partial update; ``None`` clears optional fields and is ignored for the rest."""
        product = cls._get(product_id)
        if changes.get("code") is not None:
            cls.ensure_unique_code(changes["code"], exclude_id=product.pk)

        updated_fields = []
        for field, value in changes.items():
            if value is None and field not in cls.NULLABLE_FIELDS:
                continue
            setattr(product, field, value)
            updated_fields.append(field)

        if updated_fields:
            product.save(update_fields=updated_fields + ["updated_at"])
            logger.info("Updated product %s: %s", product.pk, ", ".join(updated_fields))
        return product

    @classmethod
    def toggle_product(cls, product_id: int) -> Product:
        product = cls._get(product_id)
        product.is_active = not product.is_active
        product.save(update_fields=["is_active", "updated_at"])
        logger.info("Product %s is now %s", product.pk, "active" if product.is_active else "inactive")
        return product

    @classmethod
    def delete_product(cls, product_id: int) -> None:
        cls._get(product_id).delete()
        logger.info("Deleted product %s", product_id)
