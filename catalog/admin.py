from django.contrib import admin
from .models import Category, Subcategory, Product, ProductAsset


class SubcategoryInline(admin.TabularInline):
    model = Subcategory
    extra = 1
    fields = ('name', 'slug', 'display_order', 'filter_config')


class ProductAssetInline(admin.TabularInline):
    model = ProductAsset
    extra = 1
    fields = ('file', 'kind', 'section', 'is_primary', 'sort_order', 'alt', 'title')


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "created_at")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [SubcategoryInline]


@admin.register(Subcategory)
class SubcategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "slug", "display_order")
    list_filter = ("category",)
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "subcategory", "price", "stock", "brand", "created_at")
    list_filter = ("category", "subcategory")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ProductAssetInline]
    search_fields = ("name", "description", "brand")
