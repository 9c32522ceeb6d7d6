"""Category management: commands and handler for the admin category tree.

Images go through the blob store. A replaced or removed image is deleted
from the store after the category has been saved.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.category.category import Category
from storefront.domain import storefront
from storefront.errors import StateConflictError
from storefront.storage import decode_upload, get_blob_store

logger = structlog.get_logger(__name__)

IMAGE_FOLDER = "categories"


@storefront.command(part_of="Category")
class CreateCategory:
    name = String(required=True, max_length=100)
    description = Text()
    parent_id = Identifier()
    sort_order = Integer(default=0)
    status = String(max_length=20)
    is_featured = Boolean(default=False)
    show_on_homepage = Boolean(default=False)
    image_filename = String(max_length=255)
    image_content = Text()  # base64-encoded file body
    image_alt = String(max_length=255)
    admin_id = Identifier()


@storefront.command(part_of="Category")
class UpdateCategory:
    category_id = Identifier(required=True)
    changes = Text()  # JSON: name, description, sort_order, status, is_featured, show_on_homepage
    image_filename = String(max_length=255)
    image_content = Text()
    image_alt = String(max_length=255)
    delete_image = Boolean(default=False)
    admin_id = Identifier()


@storefront.command(part_of="Category")
class DeleteCategory:
    category_id = Identifier(required=True)
    permanent = Boolean(default=False)
    admin_id = Identifier()


@storefront.command(part_of="Category")
class RecordCategoryView:
    category_id = Identifier(required=True)


def _upload(filename, content, field="image_content") -> dict | None:
    if not content:
        return None
    if not filename:
        raise ValidationError({"image_filename": ["Image filename is required with image content"]})
    return get_blob_store().put(decode_upload(content, field), filename, IMAGE_FOLDER)


@storefront.command_handler(part_of=Category)
class CategoryManagementHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        repo = current_domain.repository_for(Category)
        parent = repo.get(command.parent_id) if command.parent_id else None

        category = Category.create(
            name=command.name,
            description=command.description,
            parent=parent,
            sort_order=command.sort_order,
            status=command.status,
            is_featured=command.is_featured,
            show_on_homepage=command.show_on_homepage,
            created_by=command.admin_id,
        )
        stored = _upload(command.image_filename, command.image_content)
        if stored:
            category.set_image(url=stored["url"], key=stored["key"], alt_text=command.image_alt)

        repo.add(category)
        logger.info("category_created", category_id=str(category.id), slug=category.slug, level=category.level)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        changes = json.loads(command.changes) if command.changes else {}

        path_changed = category.update_details(updated_by=command.admin_id, **changes)

        stale_key = None
        stored = _upload(command.image_filename, command.image_content)
        if stored:
            stale_key = category.set_image(url=stored["url"], key=stored["key"], alt_text=command.image_alt)
        elif command.delete_image:
            stale_key = category.clear_image()

        repo.add(category)
        if path_changed:
            self._rebase_descendants(repo, category)
        if stale_key:
            get_blob_store().delete(stale_key)
        return str(category.id)

    def _rebase_descendants(self, repo, category):
        for child in repo.children_of(category.id):
            child.rebase(category.path)
            repo.add(child)
            self._rebase_descendants(repo, child)

    @handle(DeleteCategory)
    def delete_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)

        if not command.permanent:
            category.deactivate(updated_by=command.admin_id)
            repo.add(category)
            logger.info("category_deleted", category_id=str(category.id), permanent=False)
            return

        if repo.children_of(category.id):
            raise StateConflictError("Category has subcategories and cannot be deleted")
        if category.product_count:
            raise StateConflictError(f"Category has {category.product_count} products and cannot be deleted")

        image_key = category.image.key if category.image else None
        repo._dao.delete(category)
        if image_key:
            get_blob_store().delete(image_key)
        logger.info("category_deleted", category_id=str(command.category_id), permanent=True)

    @handle(RecordCategoryView)
    def record_view(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category.record_view()
        repo.add(category)
