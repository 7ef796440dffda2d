from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ValidationError

from sellytics_admin.errors import DataIntegrityError

SALES_TABLE = "dynamic_sales"
PRODUCTS_TABLE = "dynamic_product"


def coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise DataIntegrityError(code="NON_NUMERIC_AMOUNT", message="Sales amount is not numeric", details={"value": value})
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise DataIntegrityError(
                code="NON_NUMERIC_AMOUNT",
                message="Sales amount is not numeric",
                details={"value": value},
            ) from exc
    else:
        raise DataIntegrityError(code="NON_NUMERIC_AMOUNT", message="Sales amount is not numeric", details={"value": repr(value)})
    if not amount.is_finite():
        raise DataIntegrityError(code="NON_NUMERIC_AMOUNT", message="Sales amount is not finite", details={"value": str(value)})
    return amount


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


class ReceiptViewRecord(BaseModel):
    """Flattened receipt/sale/product row; `returned` exists only client side."""

    receipt_id: Any
    sale_id: Any = None
    product_id: Any = None
    customer_name: str | None = None
    device_id: str | None = None
    product_name: str | None = None
    supplier_name: str | None = None
    sales_amount: Decimal
    returned: bool = False

    @property
    def display_amount(self) -> str:
        return format_amount(self.sales_amount)


def _embedded(row: dict[str, Any], table: str) -> dict[str, Any]:
    value = row.get(table)
    if not isinstance(value, dict):
        raise DataIntegrityError(
            code="MISSING_JOIN",
            message=f"Row has no joined {table} record",
            details={"receipt_id": row.get("id")},
        )
    return value


def project_receipt_row(row: dict[str, Any], *, supplier_field: str) -> ReceiptViewRecord:
    sale = _embedded(row, SALES_TABLE)
    product = _embedded(row, PRODUCTS_TABLE)
    if supplier_field not in product:
        raise DataIntegrityError(
            code="MISSING_JOIN_FIELD",
            message=f"{PRODUCTS_TABLE} row has no '{supplier_field}' field",
            details={"receipt_id": row.get("id"), "available": sorted(product)},
        )
    amount = coerce_amount(sale.get("amount"))
    try:
        return ReceiptViewRecord(
            receipt_id=row.get("id"),
            sale_id=row.get("sales_id"),
            product_id=row.get("product_id"),
            customer_name=row.get("customer_name"),
            device_id=row.get("device_id"),
            product_name=product.get("name"),
            supplier_name=product.get(supplier_field),
            sales_amount=amount,
            returned=False,
        )
    except ValidationError as exc:
        raise DataIntegrityError(
            code="INVALID_JOIN_ROW",
            message="Joined receipt row has badly typed fields",
            details={"receipt_id": row.get("id"), "errors": exc.errors(include_url=False, include_input=False)},
        ) from exc
