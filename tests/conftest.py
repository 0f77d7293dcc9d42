"""
Shared fixtures: a small cars dataset used across the test modules.
"""
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sheetgpt.loader import load_dataset

CARS_CSV = b"""Make,Model,Price,Horsepower,Fuel
Toyota,Corolla,20000,139,Gas
Honda,Civic,22000,158,Gas
Ford,Mustang,35000,310,Gas
Tesla,Model 3,40000,283,Electric
BMW,M3,70000,473,Gas
Nissan,Leaf,28000,147,Electric
"""


@pytest.fixture
def cars_csv() -> bytes:
    return CARS_CSV


@pytest.fixture
def cars(cars_csv):
    return load_dataset(cars_csv, "cars.csv")
