"""Product catalogue: reads and admin writes against the ``products`` collection.

Product documents look like::

    {
        "name": "Oud Noir",
        "description": "...",
        "price": 49900,                      # legacy single price (50ml)
        "prices": [{"volume": "50ml", "price": 49900}, {"volume": "100ml", "price": 79900}],
        "featured": True,
        "tags": ["woody", "evening"],
        "notes": ["oud", "amber"],
        "image_url": "...",
        "image_path": "product-images/...",
        "created_at": <server timestamp>,
    }
"""

import time
from collections.abc import Callable

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.catalogue.variant import DEFAULT_VOLUME, resolve_variant
from storefront.documents.port import SERVER_TIMESTAMP, DocumentStore, Filter
from storefront.storage.port import ObjectStorage

logger = structlog.get_logger(__name__)

PRODUCTS = "products"
IMAGE_PREFIX = "product-images"

SORT_ORDERS = ("newest", "price_asc", "price_desc", "name")


class ProductCatalogue:
    """Catalogue reads for the storefront and writes for the admin back-office."""

    def __init__(self, documents: DocumentStore, storage: ObjectStorage | None = None) -> None:
        self.documents = documents
        self.storage = storage

    def get_product(self, product_id: str) -> dict:
        data = self.documents.get_document(PRODUCTS, product_id)
        if data is None:
            raise ObjectNotFoundError({"product_id": [f"Product {product_id} not found"]})
        return {"id": product_id, **data}

    def list_products(self, tag: str | None = None, featured: bool | None = None, limit: int | None = 100) -> list[dict]:
        filters = []
        if tag:
            filters.append(Filter("tags", "array-contains", tag))
        if featured is not None:
            filters.append(Filter("featured", "==", featured))
        docs = self.documents.query(PRODUCTS, filters=filters, order_by="created_at", descending=True, limit=limit)
        return [doc.to_dict() for doc in docs]

    def add_product(
        self,
        fields: dict,
        image: bytes | None = None,
        image_name: str = "image",
        on_progress: Callable[[int], None] | None = None,
    ) -> dict:
        if not (fields.get("name") or "").strip():
            raise ValidationError({"name": ["Product name is required"]})

        record = _normalize_prices(dict(fields))
        if image is not None:
            record.update(self._upload_image(image, image_name, on_progress))
        record["created_at"] = SERVER_TIMESTAMP

        product_id = self.documents.create_document(PRODUCTS, record)
        logger.info("product_added", product_id=product_id, name=record["name"])
        return self.get_product(product_id)

    def update_product(self, product_id: str, updates: dict) -> dict:
        self.get_product(product_id)
        self.documents.update_document(PRODUCTS, product_id, _normalize_prices(dict(updates)))
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> None:
        product = self.get_product(product_id)
        self.documents.delete_document(PRODUCTS, product_id)
        image_path = product.get("image_path")
        if image_path and self.storage is not None and not self.storage.delete(image_path):
            logger.warning("product_image_missing", product_id=product_id, image_path=image_path)

    def _upload_image(self, image: bytes, image_name: str, on_progress) -> dict:
        if self.storage is None:
            raise ValidationError({"image": ["Image uploads are not configured"]})
        path = f"{IMAGE_PREFIX}/{int(time.time() * 1000)}-{image_name}"
        url = self.storage.upload(image, path, on_progress=on_progress)
        return {"image_url": url, "image_path": path}


def _normalize_prices(record: dict) -> dict:
    """Drop unpriced volumes and keep the legacy ``price`` equal to the 50ml price."""
    if "prices" not in record:
        return record
    prices = [entry for entry in record["prices"] or [] if (entry.get("price") or 0) > 0]
    record["prices"] = prices
    main = next((entry["price"] for entry in prices if entry["volume"] == DEFAULT_VOLUME), None)
    if main is not None:
        record["price"] = main
    return record


def _display_price(product: dict) -> int:
    return resolve_variant(product).unit_price


def filter_products(
    products: list[dict],
    text: str | None = None,
    tag: str | None = None,
    sort: str = "newest",
) -> list[dict]:
    """Client-side search, tag filter and sort over already-fetched products."""
    if sort not in SORT_ORDERS:
        raise ValidationError({"sort": [f"Unknown sort order: {sort}"]})

    needle = (text or "").strip().lower()
    selected = []
    for product in products:
        if tag and tag not in (product.get("tags") or []):
            continue
        if needle:
            haystack = " ".join(
                [
                    product.get("name") or "",
                    product.get("description") or "",
                    *(product.get("tags") or []),
                    *(product.get("notes") or []),
                ]
            ).lower()
            if needle not in haystack:
                continue
        selected.append(product)

    if sort == "price_asc":
        return sorted(selected, key=_display_price)
    if sort == "price_desc":
        return sorted(selected, key=_display_price, reverse=True)
    if sort == "name":
        return sorted(selected, key=lambda p: (p.get("name") or "").lower())
    # Newest first; undated products last
    dated = [p for p in selected if p.get("created_at") is not None]
    undated = [p for p in selected if p.get("created_at") is None]
    return sorted(dated, key=lambda p: p["created_at"], reverse=True) + undated
