import os
import sys

import pytest

# Add src and the shared test helpers to path for internal imports
tests_path = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(os.path.dirname(tests_path), 'src')
for path in (src_path, tests_path):
    if path not in sys.path:
        sys.path.insert(0, path)

from service_pricing.store.csv_store import CsvPriceStore
from support import FakePriceStore


@pytest.fixture
def fake_store():
    return FakePriceStore()


@pytest.fixture
def csv_store(tmp_path):
    return CsvPriceStore(tmp_path / "prices.csv")


@pytest.fixture
def memory_store():
    return CsvPriceStore()
