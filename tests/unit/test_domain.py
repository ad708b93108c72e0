"""
Unit tests for domain entities.
"""
from datetime import datetime, timezone

import pytest

from internal.domain.customer import Customer, CustomerEvent, Product
from internal.domain.errors import DomainValidationError
from internal.domain.operations import PaymentRequest, PaymentResponse, ProductReport
from internal.domain.value_objects import (
    CustomerEventType,
    CustomerProfile,
    CustomerType,
    ProductSubType,
    ProductType,
    is_valid_subtype,
)


class TestValueObjects:
    """Tests for enum parsing."""

    def test_parse_is_case_insensitive(self):
        assert CustomerType.parse(" business ") == CustomerType.BUSINESS
        assert ProductSubType.parse("gold_card") == ProductSubType.GOLD_CARD

    def test_blank_parses_to_none(self):
        assert CustomerProfile.parse("") is None
        assert CustomerProfile.parse(None) is None

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            ProductType.parse("BOND")

    def test_matches(self):
        assert ProductType.CREDIT_CARD.matches("credit_card")
        assert not ProductType.CREDIT_CARD.matches(None)

    def test_subtype_table(self):
        assert is_valid_subtype(ProductType.LOAN, ProductSubType.MORTGAGE)
        assert not is_valid_subtype(ProductType.ACCOUNT, ProductSubType.GOLD_CARD)


class TestCustomer:
    """Tests for the Customer aggregate."""

    def test_raw_classification_is_coerced(self):
        customer = Customer(customer_type="personal", profile="vip")
        assert customer.customer_type == CustomerType.PERSONAL
        assert customer.profile == CustomerProfile.VIP

    def test_invalid_classification_raises(self):
        with pytest.raises(DomainValidationError):
            Customer(customer_type="GOVERNMENT")

    def test_apply_update_touches_only_mutable_fields(self, personal_customer):
        personal_customer.products.append(Product(id="p-1"))
        changes = Customer(
            id="x",
            customer_type="BUSINESS",
            dni="00000000",
            ruc="20999999999",
            first_name="Ana María",
            address=None,
            products=[],
        )

        personal_customer.apply_update(changes)

        assert personal_customer.id == "c-1"
        assert personal_customer.customer_type == CustomerType.PERSONAL
        assert personal_customer.dni == "12345678"
        assert personal_customer.ruc is None
        assert personal_customer.first_name == "Ana María"
        assert personal_customer.address == "Av. Arequipa 123"
        assert [p.id for p in personal_customer.products] == ["p-1"]

    def test_copy_is_detached(self, personal_customer):
        personal_customer.products.append(Product(id="p-1", type="ACCOUNT"))
        clone = personal_customer.copy()

        clone.email = "other@example.com"
        clone.products[0].type = "LOAN"

        assert personal_customer.email == "ana.torres@example.com"
        assert personal_customer.products[0].type == "ACCOUNT"

    def test_dict_roundtrip(self, business_customer):
        business_customer.products.append(
            Product(id="p-1", category="ASSET", type="CREDIT_CARD", sub_type="BUSINESS_CARD")
        )
        data = business_customer.to_dict()

        assert data["customerType"] == "BUSINESS"
        assert data["products"][0]["subType"] == "BUSINESS_CARD"
        assert Customer.from_dict(data) == business_customer


class TestProduct:
    """Tests for product records."""

    def test_from_dict_accepts_numeric_ids(self):
        product = Product.from_dict({"id": 12, "type": "LOAN", "sub_type": "AUTO_LOAN"})
        assert product.id == "12"
        assert product.sub_type == "AUTO_LOAN"

    def test_to_dict_omits_missing_owner(self):
        assert "customerId" not in Product(id="p").to_dict()


class TestCustomerEvent:
    """Tests for lifecycle events."""

    def test_roundtrip(self, personal_customer):
        ts = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        event = CustomerEvent(CustomerEventType.DELETED, personal_customer, timestamp=ts)

        parsed = CustomerEvent.from_dict(event.to_dict())

        assert parsed.event_type == CustomerEventType.DELETED
        assert parsed.customer == personal_customer
        assert parsed.timestamp == ts

    @pytest.mark.parametrize("payload", [
        {},
        {"eventType": "CREATED"},
        {"eventType": "MERGED", "customer": {}},
        {"eventType": "CREATED", "customer": {}, "timestamp": "yesterday"},
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(DomainValidationError):
            CustomerEvent.from_dict(payload)


class TestOperations:
    """Tests for relayed product service records."""

    def test_payment_request_omits_default_source(self):
        assert PaymentRequest("cc-1", 10.0).to_dict() == {"targetProductId": "cc-1", "amount": 10.0}
        assert PaymentRequest("cc-1", 10.0, "acc-1").to_dict()["sourceProductId"] == "acc-1"

    def test_payment_response_failed_flag(self):
        assert PaymentResponse.from_dict({"status": "FAILED"}).failed is True
        assert PaymentResponse.from_dict({"status": "COMPLETED"}).failed is False

    def test_report_balance_is_numeric(self):
        report = ProductReport.from_dict({"productId": "p-1", "subType": "SAVINGS", "balance": "12.5"})
        assert report.balance == 12.5
        assert report.to_dict()["subType"] == "SAVINGS"
