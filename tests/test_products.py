from decimal import Decimal

import pytest

from billing.core.exceptions import NotFoundError, ValidationError
from billing.infrastructure.base import Catalog
from billing.models.domain import ProductId, ProductSummary, ResolvedProduct
from billing.services.products import (
    category_id_of,
    item_from_product,
    product_ref_from_api,
    resolve_product,
    select_batch,
)

PRODUCT = {
    "_id": "p1",
    "name": "Paracetamol 500",
    "price": 30,
    "quantity": 40,
    "category": {"_id": "cat-med", "name": "Medicine"},
    "batches": [
        {"_id": "b1", "batchNumber": "PCM-01", "unitCost": "28.50", "quantity": 10},
        {"_id": "b2", "batchNumber": "PCM-02", "unitCost": 31, "quantity": 30},
    ],
}


class DictCatalog(Catalog):
    def __init__(self, products):
        self.products = products
        self.lookups = []

    def get_product(self, product_id):
        self.lookups.append(product_id)
        if product_id not in self.products:
            raise NotFoundError(f"Product {product_id} not found")
        return ProductSummary.model_validate(self.products[product_id])


def test_ref_from_string_and_object():
    assert product_ref_from_api(" p1 ") == ProductId(product_id="p1")

    ref = product_ref_from_api(PRODUCT)
    assert isinstance(ref, ResolvedProduct)
    assert ref.product.category_id == "cat-med"
    assert ref.product.available_batches[0].unit_cost == Decimal("28.50")


@pytest.mark.parametrize("value", [None, "", 42, ["p1"]])
def test_ref_rejects_other_values(value):
    with pytest.raises(ValidationError):
        product_ref_from_api(value)


def test_resolve_uses_catalog_only_for_ids():
    catalog = DictCatalog({"p1": PRODUCT})

    resolved = resolve_product(product_ref_from_api(PRODUCT), catalog)
    assert catalog.lookups == []

    looked_up = resolve_product(ProductId(product_id="p1"), catalog)
    assert catalog.lookups == ["p1"]
    assert looked_up == resolved


def test_resolve_without_catalog():
    with pytest.raises(ValidationError):
        resolve_product(ProductId(product_id="p1"))


def test_resolve_unknown_product():
    with pytest.raises(NotFoundError):
        resolve_product(ProductId(product_id="nope"), DictCatalog({}))


def test_first_batch_prices_the_line():
    item = item_from_product(ProductSummary.model_validate(PRODUCT), quantity=2)

    assert item.price == Decimal("28.50")
    assert item.batch_number == "PCM-01"
    assert item.batch_id == "b1"
    assert item.total == Decimal("57.00")


def test_requested_batch_prices_the_line():
    item = item_from_product(ProductSummary.model_validate(PRODUCT), batch_number="PCM-02")
    assert item.price == Decimal("31.00")
    assert item.batch_id == "b2"


def test_unknown_batch():
    product = ProductSummary.model_validate(PRODUCT)
    with pytest.raises(NotFoundError) as exc:
        select_batch(product, "PCM-99")
    assert exc.value.details["available"] == ["PCM-01", "PCM-02"]


def test_product_without_batches_uses_list_price():
    product = ProductSummary.model_validate({"_id": "p2", "name": "Bandage", "price": "12.5", "quantity": 3})

    item = item_from_product(product)

    assert item.price == Decimal("12.50")
    assert item.batch_number is None
    with pytest.raises(NotFoundError):
        item_from_product(product, batch_number="X")


@pytest.mark.parametrize("quantity", [0, -2])
def test_out_of_stock_product(quantity):
    product = ProductSummary.model_validate({**PRODUCT, "quantity": quantity})
    with pytest.raises(ValidationError):
        item_from_product(product)


def test_unknown_stock_is_sellable():
    product = ProductSummary.model_validate({"_id": "p3", "name": "Service", "price": 100})
    assert item_from_product(product).price == Decimal("100.00")


def test_invalid_quantity():
    with pytest.raises(ValidationError):
        item_from_product(ProductSummary.model_validate(PRODUCT), quantity=0)


@pytest.mark.parametrize("value,expected", [
    ("cat-1", "cat-1"),
    ({"_id": "cat-2", "name": "Grocery"}, "cat-2"),
    ({"id": "cat-3"}, "cat-3"),
    (None, None),
])
def test_category_id_of(value, expected):
    assert category_id_of(value) == expected


def test_category_id_of_rejects_numbers():
    with pytest.raises(ValidationError):
        category_id_of(7)
