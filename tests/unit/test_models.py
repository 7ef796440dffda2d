from __future__ import annotations

from decimal import Decimal

import pytest

from sellytics_admin.errors import DataIntegrityError
from sellytics_admin.models import coerce_amount, format_amount, project_receipt_row


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(1500, "1500.00"), (99.5, "99.50"), ("12.346", "12.35"), (Decimal("0"), "0.00"), (" 7 ", "7.00")],
)
def test_amounts_format_with_two_decimals(raw, expected) -> None:
    assert format_amount(coerce_amount(raw)) == expected


@pytest.mark.parametrize("raw", [None, True, "", "abc", "NaN", float("inf"), [1], {"amount": 1}])
def test_non_numeric_amounts_are_integrity_errors(raw) -> None:
    with pytest.raises(DataIntegrityError) as excinfo:
        coerce_amount(raw)
    assert excinfo.value.code == "NON_NUMERIC_AMOUNT"


def test_projection_flattens_receipt_sale_and_product() -> None:
    row = {
        "id": 7,
        "customer_name": "Chidi",
        "sales_id": 9,
        "product_id": 3,
        "device_id": "DEV123",
        "dynamic_sales": {"amount": "250"},
        "dynamic_product": {"name": "Phone X", "suppliers_name": "Acme"},
    }

    record = project_receipt_row(row, supplier_field="suppliers_name")

    assert record.model_dump() == {
        "receipt_id": 7,
        "sale_id": 9,
        "product_id": 3,
        "customer_name": "Chidi",
        "device_id": "DEV123",
        "product_name": "Phone X",
        "supplier_name": "Acme",
        "sales_amount": Decimal("250"),
        "returned": False,
    }


def test_projection_requires_both_joined_records() -> None:
    row = {"id": 1, "dynamic_sales": {"amount": 1}, "dynamic_product": None}

    with pytest.raises(DataIntegrityError) as excinfo:
        project_receipt_row(row, supplier_field="suppliers_name")

    assert excinfo.value.code == "MISSING_JOIN"
