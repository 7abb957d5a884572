"""Notification stream registry — pluggable live-update transport."""

_stream_instance = None


def get_stream():
    """Return the configured notification stream (singleton).

    Only the in-memory fake ships with the client; a broker-backed adapter
    implements `NotificationStreamPort` and is installed with `set_stream`.
    """
    global _stream_instance
    if _stream_instance is None:
        from notifications.stream.fake_stream import FakeNotificationStream

        _stream_instance = FakeNotificationStream()
    return _stream_instance


def set_stream(stream) -> None:
    global _stream_instance
    _stream_instance = stream


def reset_stream():
    """Close and forget the stream singleton (useful for testing)."""
    global _stream_instance
    if _stream_instance is not None:
        _stream_instance.close()
    _stream_instance = None
