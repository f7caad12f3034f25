"""
Subscription service

Packages, subscription payments and the transaction history. A free
package is confirmed as soon as it is chosen; a paid one creates a pending
payment that stays pending until it is received and confirmed by an
operator, or canceled by the account holder.
"""

import logging
import uuid
from datetime import timedelta
from typing import Iterable, List, Optional

from ..domain.models import Package, Payment, PayableType, PaymentStatus, User, as_utc, now_utc
from ..infrastructure.kuzu_repositories import KuzuPackageRepository, KuzuPaymentRepository
from ..utils.pagination import Page
from .errors import AccountError, NotFoundError

logger = logging.getLogger(__name__)

FREE_PAYMENT_METHOD = 'free'


def _transaction_ref() -> str:
    return uuid.uuid4().hex[:12].upper()


class SubscriptionService:
    """Service for subscription packages and payments."""

    def __init__(self):
        self.package_repo = KuzuPackageRepository()
        self.payment_repo = KuzuPaymentRepository()

    def list_packages(self) -> List[Package]:
        return self.package_repo.list_active()

    def get_package(self, package_id: int) -> Package:
        package = self.package_repo.get_by_id(package_id)
        if package is None or not package.is_active:
            raise NotFoundError('Package not found.')
        return package

    def _with_package(self, payment: Payment) -> Payment:
        if payment.package_id is not None:
            payment.package = self.package_repo.get_by_id(payment.package_id)
        return payment

    def _subscription_payments(self, user_id: int) -> List[Payment]:
        total = self.payment_repo.count_for_user(user_id, PayableType.SUBSCRIPTION.value)
        return self.payment_repo.list_for_user(user_id, PayableType.SUBSCRIPTION.value, limit=max(total, 1))

    def current_subscription(self, user_id: int) -> Optional[Payment]:
        """The confirmed subscription payment covering the present moment."""
        moment = now_utc()
        for payment in self._subscription_payments(user_id):
            if payment.is_active_at(moment):
                return self._with_package(payment)
        return None

    def pending_subscription(self, user_id: int) -> Optional[Payment]:
        for payment in self._subscription_payments(user_id):
            if payment.is_pending:
                return self._with_package(payment)
        return None

    def _next_period_start(self, user_id: int):
        start = now_utc()
        for payment in self._subscription_payments(user_id):
            end = as_utc(payment.period_end)
            if payment.status == PaymentStatus.CONFIRMED.value and end and end > start:
                start = end
        return start

    def _activate(self, payment: Payment, package: Package) -> Payment:
        start = self._next_period_start(payment.user_id)
        payment.status = PaymentStatus.CONFIRMED.value
        payment.period_start = start
        payment.period_end = start + timedelta(days=package.interval_days)
        payment.updated_at = now_utc()
        return payment

    def subscribe(self, user: User, package_id: int, payment_method: Optional[str],
                  allowed_methods: Iterable[str] = ()) -> Payment:
        """Choose a package; returns the confirmed (free) or pending (paid) payment."""
        package = self.get_package(package_id)
        if self.pending_subscription(user.id) is not None:
            raise AccountError('You already have a subscription payment awaiting confirmation.')

        payment = Payment(user_id=user.id, payable_type=PayableType.SUBSCRIPTION.value,
                          payable_id=user.id, package_id=package.id, amount=package.price,
                          currency_code=package.currency_code, transaction_ref=_transaction_ref())
        if package.is_free:
            payment.payment_method = FREE_PAYMENT_METHOD
            self._activate(payment, package)
        else:
            allowed = list(allowed_methods)
            if not payment_method or (allowed and payment_method not in allowed):
                raise AccountError('Please select a valid payment method.')
            payment.payment_method = payment_method

        self.payment_repo.create(payment)
        payment.package = package
        logger.info(f"User {user.id} chose package {package.short_name} "
                    f"(payment {payment.id}, {payment.status})")
        return payment

    def get_user_payment(self, user_id: int, payment_id: int) -> Payment:
        payment = self.payment_repo.get_by_id(payment_id)
        if payment is None or payment.user_id != user_id:
            raise NotFoundError('Payment not found.')
        return self._with_package(payment)

    def confirm_payment(self, payment_id: int) -> Payment:
        """Mark a pending payment as received and start its period.

        This is the operator side of the payment step (the `confirm-payment`
        CLI command); account holders can only view or cancel their payments.
        """
        payment = self.payment_repo.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError('Payment not found.')
        if not payment.is_pending:
            raise AccountError('This payment has already been processed.')
        package = self._with_package(payment).package or self.get_package(payment.package_id)
        self._activate(payment, package)
        self.payment_repo.update(payment)
        payment.package = package
        logger.info(f"Payment {payment.id} confirmed for user {payment.user_id}")
        return payment

    def cancel_payment(self, user_id: int, payment_id: int) -> Payment:
        payment = self.get_user_payment(user_id, payment_id)
        if not payment.is_pending:
            raise AccountError('This payment has already been processed.')
        payment.status = PaymentStatus.CANCELED.value
        payment.updated_at = now_utc()
        self.payment_repo.update(payment)
        logger.info(f"Payment {payment.id} canceled for user {user_id}")
        return payment

    def list_transactions(self, user_id: int, payable_type: PayableType,
                          page: int = 1, per_page: int = 10) -> Page:
        total = self.payment_repo.count_for_user(user_id, payable_type.value)
        result = Page(items=[], page=page, per_page=per_page, total=total)
        payments = self.payment_repo.list_for_user(user_id, payable_type.value,
                                                   limit=per_page, offset=result.offset)
        result.items = [self._with_package(p) for p in payments]
        return result
