"""
channels — Per-channel delivery backends.

Each channel module exposes:
    async send(sender, body, from_, recipient) → DeliveryAttempt

Channels never raise; a failed send comes back as a FAILED attempt and
the dispatcher decides what that means for the whole fan-out.
"""
