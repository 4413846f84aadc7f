import pytest
from inventory.tests.notifiers import RecordingNotifier


@pytest.fixture
def alerts(settings):
    """Route low-stock alerts to an in-memory list."""
    settings.LOW_STOCK_NOTIFIER = "inventory.tests.notifiers.RecordingNotifier"
    RecordingNotifier.sent = []
    yield RecordingNotifier.sent
    RecordingNotifier.sent = []
