"""Product management: commands and handler for the admin catalogue."""

import json
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.category.category import Category
from storefront.catalogue.product import Product, ProductStatus
from storefront.domain import storefront
from storefront.storage import decode_upload, get_blob_store

logger = structlog.get_logger(__name__)

IMAGE_FOLDER = "products"


@storefront.command(part_of="Product")
class CreateProduct:
    title = String(required=True, max_length=200)
    description = Text()
    short_description = String(max_length=500)
    brand = String(max_length=100)
    category = Identifier()
    keywords = Text()  # JSON array of strings
    sku = String(max_length=50)
    slug = String(max_length=220)
    original_price = Float(required=True, min_value=0.0)
    selling_price = Float(min_value=0.0)
    currency = String(max_length=3)
    discount = Text()  # JSON: {type, value, start_date, end_date, is_active}
    stock = Text()  # JSON: {quantity, reserved, low_stock_threshold, track_inventory}
    status = String(max_length=20)
    visibility = String(max_length=20)
    is_featured = Boolean(default=False)
    is_trending = Boolean(default=False)


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: normalized partial product payload


@storefront.command(part_of="Product")
class AdjustStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)
    operation = String(max_length=10, default="set")
    reason = String(max_length=255)


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)
    permanent = Boolean(default=False)


@storefront.command(part_of="Product")
class RecordProductView:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class AddProductImage:
    product_id = Identifier(required=True)
    filename = String(required=True, max_length=255)
    content = Text(required=True)  # base64-encoded file body
    alt_text = String(max_length=255)


@storefront.command(part_of="Product")
class RemoveProductImage:
    product_id = Identifier(required=True)
    key = String(required=True, max_length=500)


@storefront.command(part_of="Product")
class BulkUpdateProducts:
    product_ids = Text(required=True)  # JSON array of product ids
    operation = String(required=True, max_length=20)
    status = String(max_length=20)
    price_operation = String(max_length=20, default="percentage")
    percentage = Float()
    amount = Float()


class BulkOperation(Enum):
    UPDATE_STATUS = "update_status"
    UPDATE_PRICES = "update_prices"
    DELETE = "delete"


def _load_json(value, default=None):
    if value is None:
        return default
    return json.loads(value) if isinstance(value, str) else value


def _category(category_id) -> Category:
    try:
        return current_domain.repository_for(Category).get(category_id)
    except ObjectNotFoundError:
        raise ValidationError({"category": ["Category not found"]}) from None


def _recount(category_id, change) -> None:
    """Move a category's product count by one, ignoring categories that are gone."""
    if not category_id:
        return
    repo = current_domain.repository_for(Category)
    try:
        category = repo.get(category_id)
    except ObjectNotFoundError:
        return
    if change > 0:
        category.product_added()
    else:
        category.product_removed()
    repo.add(category)


def _bulk_plan(command) -> tuple[BulkOperation, list[str]]:
    """Validate a bulk request up front so nothing is written on bad input."""
    product_ids = _load_json(command.product_ids, [])
    if not isinstance(product_ids, list) or not product_ids:
        raise ValidationError({"product_ids": ["Product IDs array is required"]})
    try:
        operation = BulkOperation(command.operation)
    except ValueError:
        raise ValidationError(
            {"operation": [f"Invalid operation '{command.operation}'. Use update_status, update_prices or delete"]}
        ) from None

    if operation == BulkOperation.UPDATE_STATUS:
        allowed = [s.value for s in ProductStatus if s != ProductStatus.DELETED]
        if command.status not in allowed:
            raise ValidationError({"status": [f"Status must be one of {', '.join(allowed)}"]})
    elif operation == BulkOperation.UPDATE_PRICES:
        if command.price_operation not in ("percentage", "fixed"):
            raise ValidationError({"price_operation": ["Price operation must be percentage or fixed"]})
        if command.price_operation == "percentage" and command.percentage is None:
            raise ValidationError({"percentage": ["Percentage is required"]})
        if command.price_operation == "fixed" and command.amount is None:
            raise ValidationError({"amount": ["Amount is required"]})
    return operation, [str(pid) for pid in dict.fromkeys(product_ids)]


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        repo = current_domain.repository_for(Product)
        if command.sku and repo.find_by_sku(command.sku):
            raise ValidationError({"sku": [f"SKU '{command.sku}' is already in use"]})
        if command.category:
            _category(command.category)

        product = Product.create(
            title=command.title,
            description=command.description,
            short_description=command.short_description,
            brand=command.brand,
            category=command.category,
            keywords=_load_json(command.keywords, []),
            sku=command.sku,
            slug=command.slug,
            original_price=command.original_price,
            selling_price=command.selling_price,
            currency=command.currency,
            discount=_load_json(command.discount),
            stock=_load_json(command.stock),
            status=command.status,
            visibility=command.visibility,
            is_featured=command.is_featured,
            is_trending=command.is_trending,
        )
        repo.add(product)
        _recount(product.category, +1)
        logger.info("product_created", product_id=str(product.id), sku=product.sku)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        changes = _load_json(command.changes, {})
        previous_category = product.category
        if changes.get("category") and changes["category"] != previous_category:
            _category(changes["category"])

        product.update_details(**changes)
        repo.add(product)
        if product.category != previous_category:
            _recount(previous_category, -1)
            _recount(product.category, +1)
        return str(product.id)

    @handle(AdjustStock)
    def adjust_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        previous, new_quantity = product.adjust_stock(
            quantity=command.quantity,
            operation=command.operation,
            reason=command.reason,
        )
        repo.add(product)
        logger.info(
            "stock_adjusted",
            product_id=str(product.id),
            operation=command.operation,
            previous_quantity=previous,
            new_quantity=new_quantity,
            reason=command.reason,
        )
        return {
            "product_id": str(product.id),
            "previous_quantity": previous,
            "new_quantity": new_quantity,
            "available_stock": product.available_stock,
            "stock_status": product.stock_status,
        }

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        if command.permanent:
            blob_store = get_blob_store()
            for image in product.image_list:
                blob_store.delete(image["key"])
            repo._dao.delete(product)
            _recount(product.category, -1)
            logger.info("product_deleted", product_id=str(command.product_id), permanent=True)
            return

        product.mark_deleted()
        repo.add(product)
        logger.info("product_deleted", product_id=str(product.id), permanent=False)

    @handle(RecordProductView)
    def record_view(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.record_view()
        repo.add(product)

    @handle(AddProductImage)
    def add_image(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        content = decode_upload(command.content)

        stored = get_blob_store().put(content, command.filename, IMAGE_FOLDER)
        product.add_image(url=stored["url"], key=stored["key"], alt_text=command.alt_text)
        repo.add(product)
        return stored

    @handle(RemoveProductImage)
    def remove_image(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.remove_image(command.key)
        repo.add(product)
        get_blob_store().delete(command.key)

    @handle(BulkUpdateProducts)
    def bulk_update(self, command):
        """Apply one operation to many products. Unknown ids are reported, not fatal."""
        operation, product_ids = _bulk_plan(command)
        repo = current_domain.repository_for(Product)
        products = repo.find_many(product_ids)

        modified = 0
        for product_id in product_ids:
            product = products.get(product_id)
            if product is None:
                continue
            if operation == BulkOperation.UPDATE_STATUS:
                if product.status == command.status:
                    continue
                product.update_details(status=command.status)
            elif operation == BulkOperation.UPDATE_PRICES:
                if command.price_operation == "percentage":
                    product.reprice(percentage=command.percentage)
                else:
                    product.reprice(amount=command.amount)
            else:
                if product.status == ProductStatus.DELETED.value:
                    continue
                product.mark_deleted()
            repo.add(product)
            modified += 1

        missing = [pid for pid in product_ids if pid not in products]
        logger.info(
            "bulk_update",
            operation=operation.value,
            matched_count=len(products),
            modified_count=modified,
            missing_count=len(missing),
        )
        return {
            "operation": operation.value,
            "matched_count": len(products),
            "modified_count": modified,
            "missing": missing,
        }
