"""Category aggregate root for grouping products in the catalogue."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text, ValueObject

from storefront.catalogue.category.events import CategoryCreated, CategoryDeleted, CategoryUpdated
from storefront.domain import storefront
from storefront.utils.codes import unique_slug

MAX_DEPTH = 4


class CategoryStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@storefront.value_object(part_of="Category")
class CategoryImage:
    url: String(required=True, max_length=500)
    key: String(required=True, max_length=500)
    alt_text: String(max_length=255)


@storefront.aggregate
class Category:
    """A node in the category tree, up to five levels deep (0-4).

    ``path`` is the slash-joined chain of slugs from the root down to this
    category. ``product_count`` counts products assigned to the category.
    """

    name = String(required=True, max_length=100)
    slug = String(required=True, max_length=120)
    description = Text()
    image = ValueObject(CategoryImage)
    parent_id = Identifier()
    path = String(max_length=1000)
    level = Integer(default=0, min_value=0, max_value=MAX_DEPTH)
    sort_order = Integer(default=0)
    status = String(choices=CategoryStatus, default=CategoryStatus.ACTIVE.value)
    is_featured = Boolean(default=False)
    show_on_homepage = Boolean(default=False)
    product_count = Integer(default=0, min_value=0)
    views = Integer(default=0, min_value=0)
    created_by = Identifier()
    updated_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def is_active(self) -> bool:
        return self.status == CategoryStatus.ACTIVE.value

    @classmethod
    def create(
        cls,
        name,
        description=None,
        parent=None,
        sort_order=0,
        status=CategoryStatus.ACTIVE.value,
        is_featured=False,
        show_on_homepage=False,
        created_by=None,
    ):
        """Create a category under ``parent`` (a Category or None for a root)."""
        if description and len(description) > 1000:
            raise ValidationError({"description": ["Description cannot exceed 1000 characters"]})

        level = 0 if parent is None else parent.level + 1
        if level > MAX_DEPTH:
            raise ValidationError({"parent": ["Category hierarchy cannot exceed 5 levels (depth 0-4)"]})

        now = datetime.now(UTC)
        slug = unique_slug(name)
        category = cls(
            name=name,
            slug=slug,
            description=description,
            parent_id=str(parent.id) if parent else None,
            path=f"{parent.path}/{slug}" if parent else slug,
            level=level,
            sort_order=sort_order or 0,
            status=status or CategoryStatus.ACTIVE.value,
            is_featured=bool(is_featured),
            show_on_homepage=bool(show_on_homepage),
            created_by=created_by,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=str(category.id),
                name=name,
                slug=slug,
                parent_id=category.parent_id,
                level=level,
                created_at=now,
            )
        )
        return category

    def update_details(self, updated_by=None, **changes) -> bool:
        """Apply a partial update and report whether the path changed."""
        path_changed = False
        name = changes.get("name")
        if name is not None and name != self.name:
            self.name = name
            self.slug = unique_slug(name)
            self.path = self._path_under(self.path.rsplit("/", 1)[0] if self.level else None)
            path_changed = True

        if changes.get("description") is not None:
            if len(changes["description"]) > 1000:
                raise ValidationError({"description": ["Description cannot exceed 1000 characters"]})
            self.description = changes["description"]

        for field_name in ("sort_order", "status", "is_featured", "show_on_homepage"):
            if changes.get(field_name) is not None:
                setattr(self, field_name, changes[field_name])

        self.updated_by = updated_by or self.updated_by
        self.updated_at = datetime.now(UTC)
        self.raise_(CategoryUpdated(category_id=str(self.id), name=self.name, slug=self.slug, path=self.path))
        return path_changed

    def _path_under(self, parent_path) -> str:
        return f"{parent_path}/{self.slug}" if parent_path else self.slug

    def rebase(self, parent_path: str) -> None:
        """Follow a renamed ancestor."""
        self.path = self._path_under(parent_path)

    def set_image(self, url, key, alt_text=None) -> str | None:
        """Replace the image and return the key of the one it replaced."""
        previous = self.image.key if self.image else None
        self.image = CategoryImage(url=url, key=key, alt_text=alt_text or self.name)
        self.updated_at = datetime.now(UTC)
        return previous

    def clear_image(self) -> str | None:
        previous = self.image.key if self.image else None
        self.image = None
        self.updated_at = datetime.now(UTC)
        return previous

    def deactivate(self, updated_by=None) -> None:
        if not self.is_active:
            raise ValidationError({"status": ["Category is already inactive"]})
        now = datetime.now(UTC)
        self.status = CategoryStatus.INACTIVE.value
        self.updated_by = updated_by or self.updated_by
        self.updated_at = now
        self.raise_(CategoryDeleted(category_id=str(self.id), permanent=False, deleted_at=now))

    def record_view(self) -> None:
        self.views = (self.views or 0) + 1

    def product_added(self) -> None:
        self.product_count = (self.product_count or 0) + 1

    def product_removed(self) -> None:
        self.product_count = max(0, (self.product_count or 0) - 1)

    def to_view(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "image": (
                {"url": self.image.url, "key": self.image.key, "alt_text": self.image.alt_text} if self.image else None
            ),
            "parent_id": self.parent_id,
            "path": self.path,
            "level": self.level,
            "sort_order": self.sort_order,
            "status": self.status,
            "is_featured": self.is_featured,
            "show_on_homepage": self.show_on_homepage,
            "product_count": self.product_count,
            "views": self.views,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@storefront.repository(part_of=Category)
class CategoryRepository:
    def children_of(self, category_id) -> list[Category]:
        return self._dao.query.filter(parent_id=str(category_id)).all().items

    def matching(self, **criteria) -> list[Category]:
        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        return query.all().items
