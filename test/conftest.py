import argparse

import numpy as np
import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="whether to produce vcd files",
    )


@pytest.fixture
def random_operands():
    """Seeded draws of arbitrarily wide unsigned ints, built from 64-bit limbs"""
    rng = np.random.default_rng(42)

    def draw(bits: int, count: int) -> list[int]:
        limbs = (bits + 63) // 64
        words = rng.integers(0, np.iinfo(np.uint64).max, size=(count, limbs), dtype=np.uint64, endpoint=True)
        mask = (1 << bits) - 1
        return [sum(int(word) << (64 * i) for i, word in enumerate(row)) & mask for row in words]

    return draw
