"""Application tests for category management commands and listings."""

import base64
import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.catalogue.category.management import (
    DeleteCategory,
    RecordCategoryView,
    UpdateCategory,
)
from storefront.catalogue.category.queries import featured_categories, homepage_categories, list_categories
from storefront.catalogue.management import DeleteProduct, UpdateProduct
from storefront.errors import StateConflictError
from storefront.storage import get_blob_store

IMAGE = base64.b64encode(b"\x89PNG banner").decode()


def _update(category_id, image=None, delete_image=False, **changes):
    current_domain.process(
        UpdateCategory(
            category_id=category_id,
            changes=json.dumps(changes),
            image_filename="banner.png" if image else None,
            image_content=image,
            delete_image=delete_image,
            admin_id="admin-002",
        ),
        asynchronous=False,
    )


class TestCreateCategory:
    def test_persists_category(self, create_category, load_category):
        category_id = create_category(name="Ethnic Wear", description="Kurtas and sarees", admin_id="admin-001")
        category = load_category(category_id)
        assert category.name == "Ethnic Wear"
        assert category.level == 0
        assert category.created_by == "admin-001"

    def test_child_of_existing_parent(self, create_category, load_category):
        parent_id = create_category(name="Women")
        child = load_category(create_category(name="Sarees", parent_id=parent_id))
        assert child.level == 1
        assert child.path.startswith(load_category(parent_id).slug + "/")

    def test_unknown_parent(self, create_category):
        with pytest.raises(ObjectNotFoundError):
            create_category(name="Orphan", parent_id="missing")

    def test_uploads_image(self, create_category, load_category):
        category_id = create_category(name="Women", image_filename="banner.png", image_content=IMAGE)
        image = load_category(category_id).image
        assert image.key.startswith("categories/")
        assert get_blob_store().objects[image.key] == b"\x89PNG banner"

    def test_bad_image_content(self, create_category):
        with pytest.raises(ValidationError) as exc:
            create_category(name="Women", image_filename="banner.png", image_content="not base64!")
        assert "image_content" in exc.value.messages
        assert get_blob_store().objects == {}


class TestUpdateCategory:
    def test_rename_rebases_descendants(self, create_category, load_category):
        root_id = create_category(name="Women")
        child_id = create_category(name="Sarees", parent_id=root_id)
        grandchild_id = create_category(name="Silk", parent_id=child_id)

        _update(root_id, name="Ladies")

        root = load_category(root_id)
        child = load_category(child_id)
        grandchild = load_category(grandchild_id)
        assert root.slug.startswith("ladies-")
        assert child.path == f"{root.slug}/{child.slug}"
        assert grandchild.path == f"{root.slug}/{child.slug}/{grandchild.slug}"
        assert root.updated_by == "admin-002"

    def test_new_image_replaces_old_blob(self, create_category, load_category):
        category_id = create_category(name="Women", image_filename="old.png", image_content=IMAGE)
        old_key = load_category(category_id).image.key

        _update(category_id, image=base64.b64encode(b"new").decode())

        new_key = load_category(category_id).image.key
        assert new_key != old_key
        assert old_key not in get_blob_store().objects
        assert get_blob_store().objects[new_key] == b"new"

    def test_delete_image(self, create_category, load_category):
        category_id = create_category(name="Women", image_filename="old.png", image_content=IMAGE)
        _update(category_id, delete_image=True)
        assert load_category(category_id).image is None
        assert get_blob_store().objects == {}


class TestDeleteCategory:
    def test_soft_delete_deactivates(self, create_category, load_category):
        category_id = create_category(name="Women")
        current_domain.process(DeleteCategory(category_id=category_id), asynchronous=False)
        assert load_category(category_id).status == "inactive"

    def test_permanent_delete_removes_image(self, create_category, load_category):
        category_id = create_category(name="Women", image_filename="banner.png", image_content=IMAGE)
        current_domain.process(DeleteCategory(category_id=category_id, permanent=True), asynchronous=False)
        with pytest.raises(ObjectNotFoundError):
            load_category(category_id)
        assert get_blob_store().objects == {}

    def test_permanent_delete_blocked_by_children(self, create_category, load_category):
        parent_id = create_category(name="Women")
        create_category(name="Sarees", parent_id=parent_id)
        with pytest.raises(StateConflictError):
            current_domain.process(DeleteCategory(category_id=parent_id, permanent=True), asynchronous=False)
        assert load_category(parent_id).status == "active"

    def test_permanent_delete_blocked_by_products(self, create_category, create_product):
        category_id = create_category(name="Women")
        create_product(category=category_id)
        with pytest.raises(StateConflictError) as exc:
            current_domain.process(DeleteCategory(category_id=category_id, permanent=True), asynchronous=False)
        assert "1 products" in exc.value.message


class TestProductCount:
    def test_unknown_category_rejected(self, create_product):
        with pytest.raises(ValidationError) as exc:
            create_product(category="missing")
        assert exc.value.messages["category"] == ["Category not found"]

    def test_counts_follow_assignment(self, create_category, create_product, load_category):
        women = create_category(name="Women")
        men = create_category(name="Men")
        product_id = create_product(category=women)
        create_product(title="Silk Saree", category=women)
        assert load_category(women).product_count == 2

        current_domain.process(
            UpdateProduct(product_id=product_id, changes=json.dumps({"category": men})),
            asynchronous=False,
        )
        assert load_category(women).product_count == 1
        assert load_category(men).product_count == 1

        current_domain.process(DeleteProduct(product_id=product_id, permanent=True), asynchronous=False)
        assert load_category(men).product_count == 0

    def test_reassigning_to_unknown_category_rejected(self, create_category, create_product, load_product):
        women = create_category(name="Women")
        product_id = create_product(category=women)
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateProduct(product_id=product_id, changes=json.dumps({"category": "missing"})),
                asynchronous=False,
            )
        assert load_product(product_id).category == women


class TestListings:
    def test_list_filters_and_paginates(self, create_category):
        create_category(name="Women", description="Sarees and kurtas")
        create_category(name="Men", description="Kurtas and shirts")
        create_category(name="Kids")

        result = list_categories(search="kurta", sort="name", limit=1)
        assert [c["name"] for c in result["categories"]] == ["Men"]
        assert result["pagination"]["total_count"] == 2
        assert result["pagination"]["has_next_page"] is True

    def test_status_filter(self, create_category):
        create_category(name="Women")
        create_category(name="Archive", status="inactive")
        names = [c["name"] for c in list_categories(status="active")["categories"]]
        assert names == ["Women"]

    def test_invalid_sort(self):
        with pytest.raises(ValidationError):
            list_categories(sort="colour")

    def test_featured_orders_by_views(self, create_category):
        quiet = create_category(name="Quiet", is_featured=True)
        busy = create_category(name="Busy", is_featured=True)
        create_category(name="Plain")
        create_category(name="Hidden", is_featured=True, status="inactive")
        for _ in range(3):
            current_domain.process(RecordCategoryView(category_id=busy), asynchronous=False)

        assert [c["id"] for c in featured_categories()] == [busy, quiet]
        assert len(featured_categories(limit=1)) == 1

    def test_homepage_selection(self, create_category):
        create_category(name="Women", show_on_homepage=True)
        create_category(name="Men")
        assert [c["name"] for c in homepage_categories()] == ["Women"]
