import pytest

from tests.fakes import FakeLanguageModel, FakeProvider
from src.domain.entities.memo import CompanyMatch


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def fake_llm():
    return FakeLanguageModel()


@pytest.fixture
def apple_match():
    return CompanyMatch(name="Apple Inc.", symbol="AAPL", exchange="NASDAQ")
