"""
Person alerting: rate limiting and the audio cue.
"""

from .audio import AudioNotifier, PyAudioNotifier, create_notifier_from_config
from .throttle import AlertThrottle, AlertThrottleConfig, default_call_later, monotonic_ms

__all__ = [
    "AudioNotifier",
    "PyAudioNotifier",
    "create_notifier_from_config",
    "AlertThrottle",
    "AlertThrottleConfig",
    "default_call_later",
    "monotonic_ms",
]
