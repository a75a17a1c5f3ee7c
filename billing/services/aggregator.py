"""
Ordered bill lines and their subtotal
"""
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Tuple, Union

from billing.core.enums import ItemField
from billing.core.exceptions import NotFoundError, ValidationError
from billing.models.domain import BillItem, parse_model
from billing.utils.money import ZERO, money_sum

ItemInput = Union[BillItem, Mapping[str, Any]]


class LineItems:
    """
    Bill lines in entry order

    Every mutation validates first and recomputes the subtotal last, so a
    failed call leaves the list untouched.
    """

    def __init__(self, items: Iterable[ItemInput] = ()):
        self._items: List[BillItem] = [self._coerce(item) for item in items]
        self._subtotal: Decimal = ZERO
        self.recompute_subtotal()

    @property
    def items(self) -> Tuple[BillItem, ...]:
        return tuple(self._items)

    @property
    def subtotal(self) -> Decimal:
        return self._subtotal

    def __len__(self) -> int:
        return len(self._items)

    def add_item(self, item: ItemInput) -> BillItem:
        """
        Append a line

        Raises:
            ValidationError: quantity < 1, negative price or missing fields
        """
        line = self._coerce(item)
        self._items.append(line)
        self.recompute_subtotal()
        return line

    def remove_item(self, index: int) -> BillItem:
        """
        Remove a line by position

        An empty list is allowed; whether an empty bill can be submitted is
        up to the caller.

        Raises:
            NotFoundError: Index out of range
        """
        self._check_index(index)
        line = self._items.pop(index)
        self.recompute_subtotal()
        return line

    def set_item_field(self, index: int, field: Union[str, ItemField], value: Any) -> BillItem:
        """
        Change quantity or price of a line

        Raises:
            NotFoundError: Index out of range
            ValidationError: Unknown field or invalid value
        """
        self._check_index(index)
        try:
            field = ItemField(field)
        except ValueError:
            raise ValidationError(
                f"Field '{field}' cannot be edited",
                details={"field": str(field), "allowed": [f.value for f in ItemField]}
            )

        data = self._items[index].model_dump()
        data[field.value] = value
        line = parse_model(BillItem, data)

        self._items[index] = line
        self.recompute_subtotal()
        return line

    def recompute_subtotal(self) -> Decimal:
        self._subtotal = money_sum(line.total for line in self._items)
        return self._subtotal

    def _check_index(self, index: int) -> None:
        # negative positions are rejected, no wrap-around
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self._items):
            raise NotFoundError(
                f"Bill item {index} does not exist",
                details={"index": index, "items_count": len(self._items)}
            )

    @staticmethod
    def _coerce(item: ItemInput) -> BillItem:
        if isinstance(item, BillItem):
            return item
        if isinstance(item, Mapping):
            return parse_model(BillItem, dict(item))
        raise ValidationError(
            "Bill item must be a BillItem or a mapping",
            details={"type": type(item).__name__}
        )
