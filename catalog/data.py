# catalog/data.py
import logging
from collections import defaultdict

from django.db import DatabaseError

from .models import Category, Product, ProductAsset, Subcategory
from .queries import (
    Equals,
    PaginatedProducts,
    ProductFilters,
    compose,
    normalize_pagination,
    total_pages_for,
)

logger = logging.getLogger(__name__)


def get_all_categories():
    return list(Category.objects.order_by("name"))


def get_category_and_subcategories(category_slug):
    category = Category.objects.filter(slug=category_slug).first()
    if category is None:
        return None
    return category, list(category.subcategories.all())


def get_subcategory_within_category(category_slug, subcategory_slug):
    """None when the subcategory doesn't exist or belongs to another category."""
    return (
        Subcategory.objects
        .select_related("category")
        .filter(slug=subcategory_slug, category__slug=category_slug)
        .first()
    )


def _paginated_products(scope, filters, page=None, page_size=None):
    filters = filters or ProductFilters()
    pagination = normalize_pagination(page, page_size)

    try:
        page_qs, count_qs = compose(Product.objects.all(), scope, filters, pagination)
        items = list(page_qs)
        total = count_qs.count()
    except DatabaseError:
        # total=None marks "unknown", as opposed to a real zero-match result
        logger.exception("Error fetching products for %s=%s", scope.field, scope.value)
        return PaginatedProducts(
            items=[],
            page=pagination.page,
            page_size=pagination.page_size,
            total=None,
            total_pages=None,
        )

    return PaginatedProducts(
        items=items,
        page=pagination.page,
        page_size=pagination.page_size,
        total=total,
        total_pages=total_pages_for(total, pagination.page_size),
    )


def get_products_by_category(category_id, filters=None, page=None, page_size=None):
    return _paginated_products(Equals("category_id", category_id), filters, page, page_size)


def get_products_by_subcategory(subcategory_id, filters=None, page=None, page_size=None):
    return _paginated_products(Equals("subcategory_id", subcategory_id), filters, page, page_size)


def enrich_products_with_images(products):
    """
    Product dicts with the URLs of their first two gallery images, fetched
    in one query for the whole page.
    """
    if not products:
        return []

    urls_by_product = defaultdict(list)
    try:
        assets = ProductAsset.objects.filter(
            product_id__in=[p.id for p in products],
            section="gallery",
            kind="image",
        ).order_by("-is_primary", "sort_order", "id")
        for asset in assets:
            urls_by_product[asset.product_id].append(asset.public_url)
    except DatabaseError:
        logger.exception("Error fetching gallery images")
        urls_by_product.clear()

    enriched = []
    for product in products:
        urls = urls_by_product.get(product.id, [])
        data = product.to_dict()
        data["primaryImageUrl"] = urls[0] if len(urls) > 0 else None
        data["secondaryImageUrl"] = urls[1] if len(urls) > 1 else None
        enriched.append(data)
    return enriched


def get_product_full_details(slug):
    """Product with its category, subcategory and assets grouped by section."""
    product = (
        Product.objects
        .select_related("category", "subcategory")
        .filter(slug=slug)
        .first()
    )
    if product is None:
        return None

    grouped = {"gallery": [], "additional": [], "download": []}
    for asset in product.assets.all():
        grouped.setdefault(asset.section, []).append(asset)

    return {
        "product": product,
        "category": product.category,
        "subcategory": product.subcategory,
        "assets": grouped,
    }
