import json
from pathlib import Path

import pytest

from carry_save_adder import CarrySaveAdderTree

FULL_ADDER_DELAY = 2

TIMING_BUDGETS = {
    "carry_save_256": 2.0,
    "carry_save_tree_3": 2.0,
    "carry_save_tree_9": 8.0,
    "shift_add_256_levels": 9.0,
}


def analyze_carry_save_adder(width):
    # Every bit is an independent full adder
    return FULL_ADDER_DELAY


def analyze_carry_save_tree(width, terms):
    return CarrySaveAdderTree(width=width, terms=terms).levels * FULL_ADDER_DELAY


def analyze_ripple_adder(width):
    return width * FULL_ADDER_DELAY


def analyze_shift_add_levels(width):
    # One AND level for the partial products, then a pairwise sum tree
    return 1 + (width - 1).bit_length()


def test_carry_save_is_width_independent():
    delays = {width: analyze_carry_save_adder(width) for width in (8, 64, 256, 257)}
    assert len(set(delays.values())) == 1
    assert delays[256] <= TIMING_BUDGETS["carry_save_256"]
    assert delays[256] < analyze_ripple_adder(256)


def test_carry_save_tree_timing(request):
    delay = analyze_carry_save_tree(257, 3)
    request.node.timing_info = f"{delay}-delta (budget: {TIMING_BUDGETS['carry_save_tree_3']}-delta)"
    assert delay <= TIMING_BUDGETS["carry_save_tree_3"], f"3-term tree: {delay}-delta"

    delay = analyze_carry_save_tree(257, 9)
    assert delay <= TIMING_BUDGETS["carry_save_tree_9"], f"9-term tree: {delay}-delta"


def test_shift_add_depth():
    levels = analyze_shift_add_levels(256)
    assert levels <= TIMING_BUDGETS["shift_add_256_levels"], f"shift-add: {levels} levels"


def test_no_timing_regressions():
    baseline_file = Path(__file__).parent / "timing_baseline.json"

    current_timing = {
        "carry_save_256": analyze_carry_save_adder(256),
        "carry_save_tree_3": analyze_carry_save_tree(257, 3),
        "carry_save_tree_9": analyze_carry_save_tree(257, 9),
        "shift_add_256_levels": analyze_shift_add_levels(256),
    }

    if baseline_file.exists():
        with open(baseline_file) as f:
            baseline = json.load(f)

        regressions = []
        for component, delay in current_timing.items():
            baseline_delay = baseline.get(component)
            if baseline_delay and delay > baseline_delay * 1.05:
                regressions.append(f"{component}: {delay}-delta vs {baseline_delay}-delta")

        if regressions:
            pytest.fail("Timing regressions:\n" + "\n".join(f"  {r}" for r in regressions))
    else:
        with open(baseline_file, "w") as f:
            json.dump(current_timing, f, indent=2)
        print(f"Created baseline: {baseline_file}")
