import os

# Use offscreen platform to avoid GUI requirement
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtCore import QCoreApplication

from link_helpers import FakeLink


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def fake_link(qapp):
    return FakeLink()
