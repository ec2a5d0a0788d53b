"""
Payment status verification.

A caller (the checkout page polling after redirect, or the reconciliation
task) asks for the status of a reference. Providers with a status endpoint
are queried; for the others the locally recorded attempt status is reported.

A provider-confirmed payment is credited through the credit engine when
PAYMENTS_CREDIT_ON_VERIFY is on, so a dropped webhook does not leave the
buyer without tokens. The engine's claim on the reference makes this safe
alongside the webhook for the same payment.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from core.exceptions import BaseApplicationError, NotFoundError
from core.services import BaseService, ServiceResult

from payments.adapters import get_adapter, normalize_provider
from payments.exceptions import gateway_log_context
from payments.models import PaymentAttempt
from payments.services.attempt_ledger import mark_attempt_failed
from payments.services.credit_engine import CreditRequest, CreditResult, credit
from payments.state_machines import AttemptStatus


@dataclass
class VerificationOutcome:
    """
    Result of a status check.

    Attributes:
        reference: Attempt reference
        status: AttemptStatus value
        source: "provider" if the provider was queried, else "local"
        credit: Credit engine result, when the check triggered a credit
    """

    reference: str
    status: str
    source: str
    credit: CreditResult | None = None


class VerificationService(BaseService):
    """Status checks for initiated payments."""

    @classmethod
    def verify(cls, reference: str, gateway: str | None = None) -> ServiceResult[VerificationOutcome]:
        """
        Report the status of a payment, applying what the provider says.

        Args:
            reference: Attempt reference
            gateway: Provider name; defaults to the recorded attempt's method

        Returns:
            ServiceResult with a VerificationOutcome. Fails with NOT_FOUND when
            neither the provider nor the ledger can answer, or with the gateway
            error code when the provider query failed.
        """
        attempt = PaymentAttempt.objects.latest_for_reference(reference)
        provider = normalize_provider(gateway)
        if provider is None and attempt is not None:
            provider = normalize_provider(attempt.method)
        log_context = {"reference": reference, "provider": provider}

        adapter = get_adapter(provider) if provider else None
        if adapter is None or not adapter.supports_verification:
            if attempt is None:
                return ServiceResult.from_exception(
                    NotFoundError(f"No payment found for reference {reference}")
                )
            return ServiceResult.success(
                VerificationOutcome(reference=reference, status=attempt.status, source="local")
            )

        payment_id = None
        if attempt is not None:
            payment_id = (attempt.gateway_payload or {}).get("pay_token")

        try:
            result = adapter.verify(reference, payment_id=payment_id)
        except BaseApplicationError as e:
            cls.get_logger().warning(
                f"Status query failed: {e.message}",
                extra={**log_context, "error_code": e.error_code, **gateway_log_context(e)},
            )
            return ServiceResult.from_exception(e)

        status = result.status
        if attempt is not None and attempt.is_completed:
            # Already credited through another path
            status = AttemptStatus.COMPLETED
        outcome = VerificationOutcome(reference=reference, status=status, source="provider")

        if result.is_completed and settings.PAYMENTS_CREDIT_ON_VERIFY:
            outcome.credit = credit(
                CreditRequest(
                    reference=reference,
                    amount=result.amount,
                    method=provider,
                )
            )
        elif result.is_failed:
            reason = str(result.raw_response.get("msg") or result.raw_response.get("message") or "")
            mark_attempt_failed(reference, reason or "Reported failed by provider")

        cls.get_logger().info(
            "Payment status verified",
            extra={
                **log_context,
                "status": result.status,
                "credited": bool(outcome.credit and outcome.credit.credited),
            },
        )
        return ServiceResult.success(outcome)
