"""
Payments app for the order and deposit lifecycle.

This app handles:
- Order and deposit records and their status lifecycle
- Processor webhook deliveries (payments.webhooks)
- Time-based expiration sweeps (payments.services.sweeper)
- Merchant notifications (payments.notifiers, payments.tasks)

Every status change goes through payments.services.transitions, which
applies it as one guarded UPDATE so concurrent deliveries and sweeps can
never both win.

Usage:
    from payments.services import TransitionAuthority, RecordRef

    result = TransitionAuthority().try_transition(
        RecordRef.of(order), PaymentStatus.COMPLETED, {"source_txn_hash": "0x.."}
    )
"""
