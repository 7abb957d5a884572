"""Backend adapter registry — pluggable storefront API integration."""

from shared.config import get_settings

_backend_instance = None


def get_backend(session=None, settings=None):
    """Return the configured backend adapter (singleton).

    Uses the HTTP adapter by default. Set STOREFRONT_BACKEND=fake to run
    against the in-memory fake.
    """
    global _backend_instance
    if _backend_instance is None:
        settings = settings or get_settings()
        if settings.backend == "fake":
            from shared.backend.fake_adapter import FakeBackend

            _backend_instance = FakeBackend()
        elif settings.backend == "http":
            if session is None:
                raise ValueError("The HTTP backend needs an authenticated session")
            from shared.backend.http_adapter import HttpBackend

            _backend_instance = HttpBackend(session, settings)
        else:
            raise ValueError(f"Unknown backend adapter: {settings.backend}")
    return _backend_instance


def reset_backend():
    """Reset the backend singleton (on logout, and between tests)."""
    global _backend_instance
    close = getattr(_backend_instance, "close", None)
    if close is not None:
        close()
    _backend_instance = None
