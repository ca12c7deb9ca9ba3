from decimal import Decimal

import pytest

from catalog.models import Category, Product, Subcategory


@pytest.fixture
def category(db):
    return Category.objects.create(name="Dormitorio")


@pytest.fixture
def beds(category):
    return Subcategory.objects.create(
        category=category,
        name="Camas",
        display_order=1,
        filter_config=[
            {"key": "size", "label": "Tamaño", "type": "checkbox", "options": ["queen", "king", "twin"]},
            {"key": "color", "label": "Color", "type": "select", "options": ["red", "blue", "green"]},
        ],
    )


@pytest.fixture
def lamps(category):
    return Subcategory.objects.create(category=category, name="Lámparas", display_order=2)


@pytest.fixture
def other_category(db):
    return Category.objects.create(name="Cocina")


def create_product(subcategory, name, price=None, stock=1, **attributes):
    return Product.objects.create(
        category=subcategory.category,
        subcategory=subcategory,
        name=name,
        price=Decimal(str(price)) if price is not None else None,
        stock=stock,
        attributes=attributes,
    )


@pytest.fixture
def make_product(db):
    return create_product


@pytest.fixture
def products(beds, lamps):
    """Five beds and one lamp, prices 10..50 for the beds."""
    return [
        create_product(beds, "Cama A", 10, stock=3, color="red", size="queen"),
        create_product(beds, "Cama B", 20, stock=0, color="blue", size="king"),
        create_product(beds, "Cama C", 30, stock=5, color="green", size="queen", waterproof=True),
        create_product(beds, "Cama D", 40, stock=2, color="red", size="twin", waterproof=False),
        create_product(beds, "Cama E", 50, stock=1, color="blue", size="king"),
        create_product(lamps, "Lámpara", 15, stock=4, color="red"),
    ]
