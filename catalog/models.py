# catalog/models.py
from django.db import models
from django.utils.text import slugify
from django.urls import reverse

FILTER_TYPES = [
    ("select", "Select"),
    ("checkbox", "Checkbox"),
    ("range", "Range"),
    ("boolean", "Boolean"),
]

ASSET_KINDS = [
    ("image", "Image"),
    ("video", "Video"),
    ("file", "File"),
]

ASSET_SECTIONS = [
    ("gallery", "Gallery"),
    ("additional", "Additional"),
    ("download", "Download"),
]


def unique_slug(model, name, instance_id=None, **scope):
    """
    Slugify `name` and append -1, -2, ... until no other row of `model`
    (inside `scope`, if given) uses it.
    """
    base_slug = slugify(name) or "item"
    slug = base_slug
    counter = 1
    while model.objects.filter(slug=slug, **scope).exclude(id=instance_id).exists():
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


class Category(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True, blank=True)
    image = models.ImageField(upload_to="category_images/", blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def get_absolute_url(self):
        return reverse("catalog:category_page", kwargs={"slug": self.slug})

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Category, self.name, self.id)
        super().save(*args, **kwargs)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "image_url": self.image.url if self.image else None,
        }


class Subcategory(models.Model):
    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name="subcategories"
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(blank=True)
    # list of {key, label, type, options?, min?, max?, step?}
    filter_config = models.JSONField(default=list, blank=True)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Subcategories"
        ordering = ["display_order", "id"]
        unique_together = ("category", "slug")

    def __str__(self):
        return f"{self.category.name} -> {self.name}"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Subcategory, self.name, self.id, category_id=self.category_id)
        super().save(*args, **kwargs)

    def to_dict(self, with_filters=False):
        data = {"id": self.id, "name": self.name, "slug": self.slug}
        if with_filters:
            data["filter_config"] = self.filter_config or []
        return data


class Product(models.Model):
    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name="products"
    )
    subcategory = models.ForeignKey(
        Subcategory,
        on_delete=models.CASCADE,
        related_name="products"
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=300, unique=True, blank=True)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    images = models.JSONField(default=list, blank=True)
    brand = models.CharField(max_length=120, blank=True, null=True)
    attributes = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def get_absolute_url(self):
        return reverse("catalog:product_detail", kwargs={"slug": self.slug})

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Product, self.name, self.id)
        super().save(*args, **kwargs)

    @property
    def in_stock(self):
        return self.stock > 0

    def to_dict(self):
        return {
            "id": self.id,
            "subcategory_id": self.subcategory_id,
            "category_id": self.category_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "stock": self.stock,
            "images": list(self.images or []),
            "brand": self.brand,
            "attributes": dict(self.attributes or {}),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ProductAsset(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="assets")
    kind = models.CharField(max_length=10, choices=ASSET_KINDS, default="image")
    section = models.CharField(max_length=20, choices=ASSET_SECTIONS, default="gallery")
    file = models.FileField(upload_to="products/")
    is_primary = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)
    alt = models.CharField(max_length=255, blank=True)
    title = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["-is_primary", "sort_order", "id"]

    def __str__(self):
        return f"{self.section} {self.kind} for {self.product.name}"

    @property
    def public_url(self):
        # the storage backend owns the bucket/path -> URL mapping
        return self.file.url if self.file else None

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "kind": self.kind,
            "section": self.section,
            "is_primary": self.is_primary,
            "sort_order": self.sort_order,
            "alt": self.alt,
            "title": self.title,
            "public_url": self.public_url,
        }
