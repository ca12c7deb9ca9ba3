# catalog/context_processors.py
from .cart import Cart


def cart_count(request):
    return {"cart_count": Cart(request.session).count()}
