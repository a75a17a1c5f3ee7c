"""
Product references and turning catalog products into bill lines
"""
from typing import Any, Mapping, Optional

from billing.core.exceptions import NotFoundError, ValidationError
from billing.infrastructure.base import Catalog
from billing.models.domain import (
    BillItem,
    ProductId,
    ProductRef,
    ProductSummary,
    ResolvedProduct,
    StockBatch,
    parse_model,
    reference_id,
)


def product_ref_from_api(value: Any) -> ProductRef:
    """
    Build a ProductRef from the api's productId value

    Args:
        value: Id string or populated product object

    Returns:
        ProductId for strings, ResolvedProduct for mappings

    Raises:
        ValidationError: Empty or unsupported value
    """
    if isinstance(value, str) and value.strip():
        return ProductId(product_id=value.strip())
    if isinstance(value, Mapping):
        return ResolvedProduct(product=parse_model(ProductSummary, dict(value)))
    raise ValidationError(
        "Product reference must be an id or a product object",
        details={"type": type(value).__name__}
    )


def resolve_product(ref: ProductRef, catalog: Optional[Catalog] = None) -> ProductSummary:
    """
    Turn any ProductRef into a ProductSummary

    Raises:
        ValidationError: Unresolved reference and no catalog to look it up
        NotFoundError: Catalog does not know the product
        ExternalCollaboratorError: Catalog lookup failed
    """
    if isinstance(ref, ResolvedProduct):
        return ref.product
    if catalog is None:
        raise ValidationError(
            f"Product {ref.product_id} is not resolved and no catalog is available",
            details={"product_id": ref.product_id}
        )
    return catalog.get_product(ref.product_id)


def category_id_of(value: Any) -> Optional[str]:
    """Category id from an id string or a populated category object"""
    try:
        return reference_id(value)
    except ValueError as e:
        raise ValidationError(str(e), details={"type": type(value).__name__})


def select_batch(product: ProductSummary, batch_number: Optional[str] = None) -> Optional[StockBatch]:
    """
    Pick the batch a line is priced from

    The first batch is the default. Products without batches return None.

    Raises:
        NotFoundError: batch_number is not one of the product's batches
    """
    if not product.available_batches:
        if batch_number:
            raise NotFoundError(
                f"Product {product.name} has no batch {batch_number}",
                details={"product_id": product.product_id, "batch_number": batch_number}
            )
        return None

    if batch_number is None:
        return product.available_batches[0]

    for batch in product.available_batches:
        if batch.batch_number == batch_number:
            return batch

    raise NotFoundError(
        f"Product {product.name} has no batch {batch_number}",
        details={
            "product_id": product.product_id,
            "batch_number": batch_number,
            "available": [b.batch_number for b in product.available_batches],
        }
    )


def item_from_product(product: ProductSummary, quantity: int = 1, batch_number: Optional[str] = None) -> BillItem:
    """
    Build a bill line from a catalog product

    Batch unit cost wins over the list price when the product has batches.

    Raises:
        ValidationError: Product is out of stock or quantity < 1
        NotFoundError: Unknown batch_number
    """
    if not product.in_stock:
        raise ValidationError(
            f"Product {product.name} is out of stock",
            details={"product_id": product.product_id, "quantity": product.quantity}
        )

    batch = select_batch(product, batch_number)
    return parse_model(BillItem, {
        "product_id": product.product_id,
        "name": product.name,
        "quantity": quantity,
        "price": batch.unit_cost if batch else product.price,
        "batch_number": batch.batch_number if batch else None,
        "batch_id": batch.batch_id if batch else None,
    })
