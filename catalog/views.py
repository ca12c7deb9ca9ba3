# catalog/views.py
import json
import logging
from functools import wraps

from django.contrib import messages
from django.forms.models import model_to_dict
from django.http import Http404, JsonResponse, QueryDict
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .cart import Cart
from .data import (
    enrich_products_with_images,
    get_all_categories,
    get_category_and_subcategories,
    get_product_full_details,
    get_products_by_category,
    get_products_by_subcategory,
    get_subcategory_within_category,
)
from .forms import AddToCartForm, ProductForm
from .models import Product
from .queries import default_page_size
from .url_codec import parse_listing_params, parse_query, state_to_json

logger = logging.getLogger(__name__)


def _listing_payload(result, category, subcategory):
    payload = result.to_dict()
    payload["items"] = enrich_products_with_images(result.items)
    payload["category"] = {"id": category.id, "name": category.name, "slug": category.slug}
    payload["subcategory"] = subcategory.to_dict(with_filters=True) if subcategory else None
    return payload


# ------------------ FRONTEND VIEWS ------------------

def home(request):
    return render(request, "catalog/home.html", {"categories": get_all_categories()})


def category_page(request, slug):
    """
    First page of a category, rendered on the server. The same filters and
    result are embedded as JSON so the client controller can start from them.
    """
    category_data = get_category_and_subcategories(slug)
    if category_data is None:
        raise Http404("Category not found")
    category, subcategories = category_data

    state = parse_query(
        request.GET,
        category.slug,
        [s.slug for s in subcategories],
        page_size=default_page_size(),
        filter_configs={s.slug: s.filter_config for s in subcategories},
    )
    filters = state.product_filters()
    current_subcategory = next((s for s in subcategories if s.slug == state.subcategory_slug), None)

    if current_subcategory:
        result = get_products_by_subcategory(current_subcategory.id, filters, state.page, state.page_size)
    else:
        result = get_products_by_category(category.id, filters, state.page, state.page_size)

    initial_result = _listing_payload(result, category, current_subcategory)
    seed = {
        "category": category.to_dict(),
        "subcategories": [s.to_dict(with_filters=True) for s in subcategories],
        "pagePath": category.get_absolute_url(),
        "initialFilters": state_to_json(state),
        "initialResult": initial_result,
    }

    return render(request, "catalog/category.html", {
        "category": category,
        "subcategories": subcategories,
        "current_subcategory": current_subcategory,
        "filter_config": current_subcategory.filter_config if current_subcategory else [],
        "filters": state,
        "products": initial_result["items"],
        "result": result,
        "seed": seed,
    })


def product_detail(request, slug):
    details = get_product_full_details(slug)
    if details is None:
        raise Http404("Product not found")
    return render(request, "catalog/product_detail.html", details)


# ------------------ LISTING API ------------------

@require_GET
def products_api(request):
    params = parse_listing_params(request.GET)

    if not params.category_slug:
        return JsonResponse({"error": "categorySlug is required"}, status=400)

    try:
        category_data = get_category_and_subcategories(params.category_slug)
        if category_data is None:
            return JsonResponse({"error": "Category not found"}, status=404)
        category, _ = category_data

        subcategory = None
        if params.subcategory_slug:
            subcategory = get_subcategory_within_category(category.slug, params.subcategory_slug)
            if subcategory is None:
                return JsonResponse(
                    {"error": "Subcategory not found or does not belong to this category"},
                    status=404,
                )
            result = get_products_by_subcategory(
                subcategory.id, params.filters, params.page, params.page_size
            )
        else:
            result = get_products_by_category(
                category.id, params.filters, params.page, params.page_size
            )

        payload = _listing_payload(result, category, subcategory)
        applied = params.applied_filters()
        applied.update(page=result.page, pageSize=result.page_size)
        payload["appliedFilters"] = applied
    except Exception:
        logger.exception("Products API error for %s", request.get_full_path())
        return JsonResponse({"error": "Internal server error"}, status=500)

    return JsonResponse(payload)


# ------------------ CART ------------------

def cart_view(request):
    cart = Cart(request.session)
    return render(request, "catalog/cart.html", {
        "items": cart.items(),
        "total": cart.total(),
    })


@require_POST
def add_to_cart(request):
    form = AddToCartForm(request.POST)
    if form.is_valid():
        product = get_object_or_404(Product, id=form.cleaned_data["product_id"])
        Cart(request.session).add(product, form.cleaned_data["quantity"])
        messages.success(request, f"Added {product.name} to cart.")
    else:
        messages.error(request, "Invalid product.")
    return redirect(request.META.get("HTTP_REFERER", "catalog:cart"))


@require_POST
def remove_from_cart(request):
    product_id = request.POST.get("product_id")
    if product_id:
        Cart(request.session).remove(product_id)
    return redirect("catalog:cart")


@require_POST
def clear_cart(request):
    Cart(request.session).clear()
    return redirect("catalog:cart")


# ------------------ ADMIN PRODUCT API ------------------

def staff_api_required(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not (request.user.is_authenticated and request.user.is_staff):
            return JsonResponse({"success": False, "error": "Unauthorized"}, status=401)
        return view_func(request, *args, **kwargs)
    return wrapper


def _product_payload(product):
    data = product.to_dict()
    data["assets"] = [asset.to_dict() for asset in product.assets.all()]
    return data


def _request_data(request):
    if request.method == "POST":
        return request.POST
    if request.content_type == "application/json":
        data = json.loads(request.body or b"{}")
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object")
        return data
    return QueryDict(request.body)


@staff_api_required
@require_POST
def admin_products_api(request):
    form = ProductForm(request.POST)
    if not form.is_valid():
        return JsonResponse({"success": False, "error": form.error_message()}, status=400)

    try:
        product = form.save()
    except Exception as e:
        logger.exception("Error creating product")
        return JsonResponse({"success": False, "error": str(e)}, status=500)

    logger.info("Product created: %s", product.id)
    return JsonResponse({"success": True, "product": _product_payload(product)}, status=201)


@staff_api_required
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
def admin_product_api(request, product_id):
    product = Product.objects.filter(id=product_id).first()
    if product is None:
        return JsonResponse({"success": False, "error": "Product not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"success": True, "product": _product_payload(product)})

    if request.method == "DELETE":
        try:
            product.delete()
        except Exception as e:
            logger.exception("Error deleting product %s", product_id)
            return JsonResponse({"success": False, "error": str(e)}, status=500)
        return JsonResponse({"success": True})

    # partial update: fields not sent keep their current value
    try:
        incoming = _request_data(request)
    except ValueError:
        return JsonResponse({"success": False, "error": "Invalid request body"}, status=400)

    data = model_to_dict(product, fields=ProductForm.Meta.fields)
    for key in ProductForm.Meta.fields:
        if key in incoming:
            data[key] = incoming.get(key)

    form = ProductForm(data, instance=product)
    if not form.is_valid():
        return JsonResponse({"success": False, "error": form.error_message()}, status=400)

    try:
        product = form.save()
    except Exception as e:
        logger.exception("Error updating product %s", product_id)
        return JsonResponse({"success": False, "error": str(e)}, status=500)

    return JsonResponse({"success": True, "product": _product_payload(product)})
