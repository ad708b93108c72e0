"""
Unit tests for request DTO validation.
"""
import pytest
from pydantic import ValidationError

from internal.domain.value_objects import CustomerProfile, CustomerType
from internal.transport.http.dto import (
    AddProductRequest,
    CustomerCreateRequest,
    CustomerResponse,
    CustomerUpdateRequest,
)


BUSINESS = {
    "customerType": "business",
    "profile": "pyme",
    "firstName": "Luis",
    "lastName": "Rojas",
    "businessName": "Rojas SAC",
    "dni": "87654321",
    "ruc": "20123456789",
    "phone": "912345678",
    "email": "contacto@rojas.pe",
}


def messages(exc_info) -> str:
    return " ".join(err["msg"] for err in exc_info.value.errors())


class TestCustomerCreateRequest:
    """Tests for customer creation payloads."""

    def test_valid_business_customer(self):
        request = CustomerCreateRequest.model_validate(BUSINESS)
        customer = request.to_domain()

        assert customer.id is None
        assert customer.customer_type == CustomerType.BUSINESS
        assert customer.profile == CustomerProfile.PYME
        assert customer.ruc == "20123456789"

    @pytest.mark.parametrize("ruc", ["123", "2012345678X"])
    def test_invalid_ruc(self, ruc):
        with pytest.raises(ValidationError) as exc_info:
            CustomerCreateRequest.model_validate({**BUSINESS, "ruc": ruc})
        assert "Invalid RUC format" in messages(exc_info)

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            CustomerCreateRequest.model_validate({"customerType": "PERSONAL"})
        missing = {err["loc"][0] for err in exc_info.value.errors()}
        assert {"profile", "firstName", "lastName", "dni", "phone", "email"} <= missing

    def test_blank_customer_type(self):
        with pytest.raises(ValidationError) as exc_info:
            CustomerCreateRequest.model_validate({**BUSINESS, "customerType": " "})
        assert "Customer type cannot be empty" in messages(exc_info)


class TestCustomerUpdateRequest:
    """Tests for update payloads."""

    def test_only_mutable_fields_reach_domain(self):
        request = CustomerUpdateRequest.model_validate({"phone": "900000000", "dni": "11111111"})
        changes = request.to_domain()

        assert changes.phone == "900000000"
        assert changes.dni is None
        assert changes.customer_type is None

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            CustomerUpdateRequest.model_validate({"lastName": ""})
        assert "Last name cannot be empty" in messages(exc_info)


class TestAddProductRequest:
    """Tests for product addition payloads."""

    def test_values_are_normalized(self):
        product = AddProductRequest.model_validate(
            {"category": "asset", "type": "credit_card", "subType": "gold_card"}
        ).to_domain()
        assert (product.category, product.type, product.sub_type) == ("ASSET", "CREDIT_CARD", "GOLD_CARD")

    def test_category_is_optional(self):
        product = AddProductRequest.model_validate({"type": "LOAN", "subType": "MORTGAGE"}).to_domain()
        assert product.category is None

    @pytest.mark.parametrize("payload,message", [
        ({"type": "BOND", "subType": "SAVINGS"}, "Invalid product type"),
        ({"type": "ACCOUNT", "subType": "ZERO"}, "Invalid product subtype"),
        ({"category": "EQUITY", "type": "ACCOUNT", "subType": "SAVINGS"}, "Invalid product category"),
        ({"type": "CREDIT_CARD", "subType": "MORTGAGE"}, "is not valid for product type CREDIT_CARD"),
    ])
    def test_invalid_payloads(self, payload, message):
        with pytest.raises(ValidationError) as exc_info:
            AddProductRequest.model_validate(payload)
        assert message in messages(exc_info)


def test_customer_response_uses_camel_case(personal_customer):
    body = CustomerResponse.from_domain(personal_customer).model_dump(mode="json", by_alias=True)
    assert body["customerType"] == "PERSONAL"
    assert body["firstName"] == "Ana"
    assert "first_name" not in body
