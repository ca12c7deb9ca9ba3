import pytest
from django.http import QueryDict

from catalog.queries import MAX_PAGE
from catalog.stores import FilterState
from catalog.url_codec import (
    build_url,
    cache_key,
    format_number,
    parse_listing_params,
    parse_page,
    parse_page_size,
    parse_price,
    parse_query,
    serialize,
    state_from_json,
    state_to_json,
    to_api_params,
)

SUBCATEGORIES = ["camas", "lamparas"]
FILTER_CONFIGS = {
    "camas": [
        {"key": "size", "label": "Size", "type": "checkbox", "options": ["queen", "king", "twin"]},
        {"key": "color", "label": "Color", "type": "select", "options": ["red", "blue"]},
    ],
    "lamparas": [],
}


def parse(query):
    return parse_query(query, "dormitorio", SUBCATEGORIES)


# ---------------- SANITIZERS ----------------

@pytest.mark.parametrize("raw, expected", [
    (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-4", 1), ("2abc", 1), ("1.5", 1), ("3", 3),
    ("1_0", 1), (" 2 ", 1), ("+3", 1), ("\u0663", 1),
    ("1000000", MAX_PAGE), ("99999999999999999999", MAX_PAGE),
])
def test_parse_page(raw, expected):
    assert parse_page(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (None, None), ("0", None), ("-2", None), ("1_0", None), (" 5", None), ("5", 5),
])
def test_parse_page_size(raw, expected):
    assert parse_page_size(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (None, None), ("", None), ("abc", None), ("-1", None), ("nan", None), ("inf", None),
    ("0", 0.0), ("10", 10.0), ("12.5", 12.5),
])
def test_parse_price(raw, expected):
    assert parse_price(raw) == expected


def test_format_number_drops_integer_fraction():
    assert format_number(10.0) == "10"
    assert format_number(12.5) == "12.5"


# ---------------- DECODE ----------------

def test_malformed_url_falls_back_to_defaults():
    state = parse(
        "?page=abc&sort=cheapest&minPrice=-5&maxPrice=nan&inStock=yes&subcategoria=nope"
    )
    assert state == FilterState(category_slug="dormitorio")


def test_full_url_is_read():
    state = parse(
        "subcategoria=camas&page=3&sort=price_desc&color=red&color=blue&size=queen"
        "&minPrice=100&maxPrice=250.5&inStock=true"
    )

    assert state.subcategory_slug == "camas"
    assert state.page == 3
    assert state.sort == "price_desc"
    assert state.attribute_filters == {"color": ["red", "blue"], "size": "queen"}
    assert state.min_price == 100
    assert state.max_price == 250.5
    assert state.in_stock is True


def test_lookup_like_and_empty_keys_are_dropped():
    state = parse("attributes__color=red&color__in=x&color=&size=king&weird%20key=1")
    assert state.attribute_filters == {"size": "king"}


def test_reserved_keys_never_become_attributes():
    state = parse("page=2&categorySlug=cocina&pageSize=9&sort=name_asc")
    assert state.attribute_filters == {}
    assert state.category_slug == "dormitorio"


def test_page_size_comes_from_the_caller():
    assert parse_query("pageSize=40", "dormitorio", page_size=12).page_size == 12


def test_query_dict_keeps_repeated_values():
    state = parse_query(QueryDict("color=red&color=blue"), "dormitorio")
    assert state.attribute_filters == {"color": ["red", "blue"]}


# ---------------- ENCODE ----------------

def test_defaults_are_omitted():
    state = FilterState(category_slug="dormitorio")
    assert serialize(state) == ""
    assert build_url("/categorias/dormitorio/", state) == "/categorias/dormitorio/"


def test_serialize_is_canonical():
    state = FilterState(
        category_slug="dormitorio",
        subcategory_slug="camas",
        page=2,
        sort="price_asc",
        attribute_filters={"size": "queen", "color": ["red", "blue"]},
        min_price=10.0,
        in_stock=True,
    )

    assert serialize(state) == (
        "subcategoria=camas&page=2&sort=price_asc&color=red&color=blue&size=queen"
        "&minPrice=10&inStock=true"
    )


@pytest.mark.parametrize("query", [
    "",
    "page=2",
    "subcategoria=lamparas&sort=newest",
    "color=red&color=blue&size=queen&minPrice=10.5&maxPrice=99",
    "subcategoria=camas&page=4&inStock=true&waterproof=true",
])
def test_parse_then_serialize_is_stable(query):
    once = serialize(parse(query))
    assert serialize(parse(once)) == once
    assert parse(once) == parse(query)


def test_cache_key_ignores_attribute_insertion_order():
    a = FilterState(category_slug="dormitorio", attribute_filters={"color": "red", "size": "king"})
    b = FilterState(category_slug="dormitorio", attribute_filters={"size": "king", "color": "red"})
    assert cache_key(a) == cache_key(b)


def test_cache_key_tracks_scope_and_page_size():
    base = FilterState(category_slug="dormitorio")
    assert cache_key(base) != cache_key(FilterState(category_slug="dormitorio", page_size=10))
    assert cache_key(base) != cache_key(FilterState(category_slug="dormitorio", subcategory_slug="camas"))
    assert cache_key(base) != cache_key(FilterState(category_slug="cocina"))


def test_api_params_always_carry_page_and_page_size():
    params = to_api_params(FilterState(category_slug="dormitorio", attribute_filters={"color": ["red", "blue"]}))
    assert params == [
        ("categorySlug", "dormitorio"),
        ("page", "1"),
        ("pageSize", "2"),
        ("color", "red"),
        ("color", "blue"),
    ]


# ---------------- LISTING PARAMS ----------------

def test_parse_listing_params():
    params = parse_listing_params(QueryDict(
        "categorySlug=dormitorio&subcategoria=camas&page=2&pageSize=3"
        "&color=red&color=blue&inStock=true&sort=name_desc&minPrice=5"
    ))

    assert params.category_slug == "dormitorio"
    assert params.subcategory_slug == "camas"
    assert params.page == 2
    assert params.page_size == 3
    assert params.filters.attribute_filters == {"color": ["red", "blue"]}
    assert params.filters.in_stock is True
    assert params.filters.sort == "name_desc"
    assert params.filters.min_price == 5


def test_parse_listing_params_with_garbage():
    params = parse_listing_params("page=2abc&pageSize=zero&sort=random&categorySlug=")

    assert params.category_slug is None
    assert params.page == 1
    assert params.page_size is None
    assert params.filters.sort is None


def test_applied_filters_keys():
    params = parse_listing_params("categorySlug=dormitorio&size=queen")
    assert params.applied_filters() == {
        "subcategorySlug": None,
        "page": 1,
        "pageSize": None,
        "sort": None,
        "attributeFilters": {"size": "queen"},
        "minPrice": None,
        "maxPrice": None,
        "inStock": False,
    }


# ---------------- JSON SEED ----------------

def test_json_seed_round_trip():
    state = FilterState(
        category_slug="dormitorio",
        subcategory_slug="camas",
        page=3,
        page_size=6,
        sort="price_desc",
        attribute_filters={"color": ["red", "blue"]},
        max_price=300.0,
        in_stock=True,
    )
    assert state_from_json(state_to_json(state), "dormitorio", SUBCATEGORIES) == state


def test_json_seed_is_sanitized():
    state = state_from_json(
        {
            "subcategorySlug": "sofas",
            "page": -2,
            "pageSize": 500,
            "sort": "cheapest",
            "attributeFilters": {"color__in": "red", "size": "king"},
            "minPrice": "abc",
            "inStock": "true",
        },
        "dormitorio",
        SUBCATEGORIES,
    )

    assert state.subcategory_slug is None
    assert state.page == 1
    assert state.page_size == 50
    assert state.sort is None
    assert state.attribute_filters == {"size": "king"}
    assert state.min_price is None
    assert state.in_stock is False


def test_json_seed_keeps_single_item_lists():
    state = FilterState(
        category_slug="dormitorio",
        subcategory_slug="camas",
        attribute_filters={"size": ["queen"], "color": "red"},
    )
    assert state_from_json(state_to_json(state), "dormitorio", SUBCATEGORIES) == state


# ---------------- STATE -> URL -> STATE ----------------

def parse_with_config(query):
    return parse_query(query, "dormitorio", SUBCATEGORIES, filter_configs=FILTER_CONFIGS)


@pytest.mark.parametrize("attribute_filters", [
    {"size": ["queen"]},
    {"size": ["queen", "king"]},
    {"size": ["twin"], "color": "red"},
    {"color": "blue"},
])
def test_state_survives_the_url(attribute_filters):
    state = FilterState(
        category_slug="dormitorio",
        subcategory_slug="camas",
        page=2,
        attribute_filters=attribute_filters,
    )
    assert parse_with_config(serialize(state)) == state


def test_checkbox_keys_only_apply_to_their_subcategory():
    assert parse_with_config("size=queen").attribute_filters == {"size": "queen"}
    assert parse_with_config("subcategoria=lamparas&size=queen").attribute_filters == {"size": "queen"}
    assert parse_with_config("subcategoria=camas&size=queen").attribute_filters == {"size": ["queen"]}
