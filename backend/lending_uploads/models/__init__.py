from lending_uploads.models.product import Product
from lending_uploads.models.product_asset import ProductAsset

__all__ = [
    "Product",
    "ProductAsset",
]
