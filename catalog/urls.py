# catalog/urls.py
from django.urls import path
from . import views

app_name = "catalog"

urlpatterns = [
    # ---------------- FRONTEND ----------------
    path('', views.home, name='home'),
    path('categorias/<slug:slug>/', views.category_page, name='category_page'),
    path('productos/<slug:slug>/', views.product_detail, name='product_detail'),

    # ---------------- LISTING API ----------------
    path('api/products', views.products_api, name='products_api'),

    # ---------------- CART ----------------
    path('cart/', views.cart_view, name='cart'),
    path('add-to-cart/', views.add_to_cart, name='add_to_cart'),
    path('remove-from-cart/', views.remove_from_cart, name='remove_from_cart'),
    path('clear-cart/', views.clear_cart, name='clear_cart'),

    # ---------------- ADMIN PRODUCT API ----------------
    path('api/admin/products', views.admin_products_api, name='admin_products_api'),
    path('api/admin/products/<int:product_id>', views.admin_product_api, name='admin_product_api'),
]
