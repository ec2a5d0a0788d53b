"""
Payments app for mobile-money token purchases.

This app handles:
- Payment initiation through Orange Money, SAMA Money and CinetPay
- Payment attempt tracking and provider-side verification
- Confirmation webhooks from every provider
- Token crediting with exactly-once semantics per payment reference
- Periodic reconciliation of attempts left pending

Related apps:
    - referrals: Commission posting after a successful credit

Usage:
    from payments.services import CreditRequest, PaymentOrchestrator, credit

    # Start a purchase
    result = PaymentOrchestrator.initiate(params)

    # Credit a confirmed payment
    outcome = credit(CreditRequest(reference=reference))
"""
