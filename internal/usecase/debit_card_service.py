"""
Debit Card Use Case.

Links debit cards to accounts and reads the balance behind a card, all
through the product service.
"""
from typing import Protocol

from internal.domain.errors import ProductServiceUnavailableError
from internal.domain.operations import DebitCardAssociation, DebitCardBalance
from pkg.logger.logger import get_logger
from pkg.resilience import CircuitBreaker, DownstreamUnavailableError, ResilienceOperator


logger = get_logger(__name__)


class DebitCardGateway(Protocol):
    """Protocol for the product service debit card operations."""

    async def associate_debit_card(self, customer_id: str, association: DebitCardAssociation) -> str:
        ...

    async def get_main_account_id(self, customer_id: str, card_id: str) -> str:
        ...

    async def get_debit_card_balance(self, product_id: str, card_id: str) -> DebitCardBalance:
        ...


class DebitCardService:
    """
    Debit card operations.

    Every call fails closed: downstream failures surface as
    ``ProductServiceUnavailableError`` naming the operation.
    """

    def __init__(
        self,
        products: DebitCardGateway,
        operator: ResilienceOperator,
        breaker: CircuitBreaker,
    ) -> None:
        self._products = products
        self._operator = operator
        self._breaker = breaker

    async def associate_debit_card(
        self,
        customer_id: str,
        card_id: str,
        account_ids: list[str],
    ) -> str:
        """
        Link a debit card to one or more accounts of a customer.

        Args:
            customer_id: Customer identifier.
            card_id: Debit card identifier.
            account_ids: Accounts to link, the first being the main one.

        Returns:
            Confirmation text from the product service.
        """
        association = DebitCardAssociation(card_id=card_id, account_ids=list(account_ids))
        result = await self._guarded(
            lambda: self._products.associate_debit_card(customer_id, association),
            "associating debit card",
        )
        logger.debug("Debit card associated", customer_id=customer_id, card_id=card_id)
        return result

    async def get_main_account_id(self, customer_id: str, card_id: str) -> str:
        """Id of the main account linked to a customer's debit card."""
        return await self._guarded(
            lambda: self._products.get_main_account_id(customer_id, card_id),
            "resolving main account",
        )

    async def get_main_account_balance(self, product_id: str, card_id: str) -> DebitCardBalance:
        """Balance of the main account behind a debit card."""
        balance = await self._guarded(
            lambda: self._products.get_debit_card_balance(product_id, card_id),
            "retrieving balance",
        )
        logger.debug("Balance retrieved", product_id=product_id, card_id=card_id)
        return balance

    async def _guarded(self, operation, description: str):
        try:
            return await self._operator.call(operation, self._breaker)
        except DownstreamUnavailableError as e:
            raise ProductServiceUnavailableError(description, breaker=e.breaker_name) from e
