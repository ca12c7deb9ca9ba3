# catalog/forms.py
from django import forms

from .models import Product, unique_slug


# ----------------------
# Product Form (admin API)
# ----------------------
class ProductForm(forms.ModelForm):
    attributes = forms.JSONField(required=False)

    class Meta:
        model = Product
        fields = [
            'name', 'slug', 'description', 'brand', 'price', 'stock',
            'category', 'subcategory', 'attributes',
        ]

    def clean_attributes(self):
        attributes = self.cleaned_data.get('attributes')
        if attributes in (None, ''):
            return {}
        if not isinstance(attributes, dict):
            raise forms.ValidationError("Attributes must be a JSON object.")
        return attributes

    def clean_price(self):
        price = self.cleaned_data.get('price')
        if price is not None and price < 0:
            raise forms.ValidationError("Price cannot be negative.")
        return price

    def clean(self):
        cleaned_data = super().clean()
        category = cleaned_data.get('category')
        subcategory = cleaned_data.get('subcategory')
        if category and subcategory and subcategory.category_id != category.id:
            self.add_error('subcategory', "Subcategory does not belong to the selected category.")

        name = cleaned_data.get('name')
        if name and not cleaned_data.get('slug'):
            cleaned_data['slug'] = unique_slug(Product, name, self.instance.id)
        return cleaned_data

    def error_message(self):
        """Flatten the form errors into a single line for JSON responses."""
        messages = []
        for field, errors in self.errors.items():
            label = field if field != '__all__' else 'form'
            messages.extend(f"{label}: {error}" for error in errors)
        return ", ".join(messages)


# ----------------------
# Add to Cart Form
# ----------------------
class AddToCartForm(forms.Form):
    product_id = forms.IntegerField()
    quantity = forms.IntegerField(min_value=1, required=False)

    def clean_quantity(self):
        return self.cleaned_data.get('quantity') or 1
