"""
Pytest configuration and fixtures shared by the decoding tests.
"""

import pytest
import torch

from beamstep.decoding import SpecialTokens
from beamstep.model import ModelFactory
from helpers import SPECIAL, tiny_scorer_config

torch.manual_seed(42)


@pytest.fixture
def special_tokens() -> SpecialTokens:
    return SPECIAL


@pytest.fixture
def tiny_model_factory():
    """Build small randomly initialised models on CPU."""

    def _create(**overrides):
        torch.manual_seed(0)
        return ModelFactory(tiny_scorer_config(**overrides), device="cpu").create_model()

    return _create


@pytest.fixture
def source_sequences() -> list[list[int]]:
    return [[4, 5, 6, 7, 8], [9, 4], [6, 6, 10]]


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
