"""
crisis — Crisis detection and emergency alert dispatch.

Sub-modules:
    classifier    — keyword match on chat text
    geolocation   — single-shot position acquisition
    channels/     — SMS and WhatsApp delivery backends
    messaging     — Twilio REST client
    alert_service — concurrent fan-out to all recipients
    orchestrator  — locate → dispatch state machine
    models        — data structures shared across the pipeline
"""
