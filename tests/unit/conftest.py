"""
Unit test fixtures — fake service client and configured services.
"""

import pytest

from config import TransformConfig
from webmap_styles.service import WebMapTransformService
from tests.factories.fake_clients import FakeServiceClient


@pytest.fixture
def make_service():
    """Factory fixture: WebMapTransformService with a fake client and config overrides."""
    def _make(client=None, **config_overrides):
        config = TransformConfig(**config_overrides)
        return WebMapTransformService(config=config, client=client or FakeServiceClient())
    return _make
