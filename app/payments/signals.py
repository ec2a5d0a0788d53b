"""
Signals emitted by the payments app.

tokens_credited is sent once per credited reference, after the crediting
transaction has committed. Receivers run outside that transaction, so a
failing receiver can never undo a credit.

Signal arguments:
    user_id: Buyer
    service_type: Token class credited
    tokens: Tokens added
    amount: Amount paid in FCFA
    reference: Attempt reference (or the transaction id if none)
    method: PaymentMethod value
    transaction_id: TokenTransaction primary key

Usage:
    from django.dispatch import receiver
    from payments.signals import tokens_credited

    @receiver(tokens_credited)
    def on_tokens_credited(sender, user_id, amount, reference, **kwargs):
        ...
"""

from django.dispatch import Signal

tokens_credited = Signal()
