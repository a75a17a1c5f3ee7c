from billing.core.exceptions import ExternalCollaboratorError, ValidationError
from billing.core.logging import get_logger
from billing.infrastructure.api.client import ApiClient
from billing.infrastructure.base import Catalog
from billing.models.domain import ProductSummary, parse_model

logger = get_logger(__name__)


class HttpCatalog(Catalog):
    """product lookup through GET /products/{id}"""

    def __init__(self, client: ApiClient):
        self.client = client

    def get_product(self, product_id: str) -> ProductSummary:
        """
        fetch latest price and batches of a product

        raises:
            NotFoundError: unknown product
            ExternalCollaboratorError: request failed or reply is not a product
        """
        data = self.client.get(f"/products/{product_id}")
        if isinstance(data, dict) and isinstance(data.get("product"), dict):
            data = data["product"]

        try:
            product = parse_model(ProductSummary, data)
        except ValidationError as e:
            logger.error("invalid product document", product_id=product_id, error=e.message)
            raise ExternalCollaboratorError(
                f"Catalog returned an invalid product for {product_id}",
                details={"product_id": product_id, **e.details},
            ) from e

        logger.debug(
            "product loaded",
            product_id=product.product_id,
            batches=len(product.available_batches),
        )
        return product
