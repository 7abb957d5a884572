import pytest


@pytest.fixture
def stream():
    from notifications.stream.fake_stream import FakeNotificationStream

    return FakeNotificationStream()


@pytest.fixture
def manager(stream):
    from notifications.subscription import SubscriptionManager

    return SubscriptionManager(stream)
