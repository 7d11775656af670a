import enum

MODULUS = 104899928942039473597645237135751317405745389583683433800060134911610808289117

INPUT_WIDTH = 300
WORD_WIDTH = 256
PRODUCT_WIDTH = 2 * WORD_WIDTH

# Holds any value below 2 * MODULUS
REDUCE_WIDTH = WORD_WIDTH + 1

# Barrett parameters: Q = ((X >> QUOTIENT_SHIFT) * RECIPROCAL) >> WORD_WIDTH
# underestimates floor(X / MODULUS) by at most one for every 300-bit X.
QUOTIENT_SHIFT = WORD_WIDTH - 1
RECIPROCAL = (1 << (QUOTIENT_SHIFT + WORD_WIDTH)) // MODULUS


class Readout(enum.Enum):
    """Which carry-save output the controller latches after REDUCE"""

    NORMALIZED = "normalized"
    CARRY = "carry"


def carry_save(a: int, b: int, c: int) -> tuple[int, int]:
    """Software carry-save step, returns (carry, sum) like the hardware tree"""
    carry = (a & b) | (a & c) | (b & c)
    return carry, a ^ b ^ c


def quotient_estimate(x: int) -> int:
    return ((x >> QUOTIENT_SHIFT) * RECIPROCAL) >> WORD_WIDTH


def reduce(x: int, readout: Readout = Readout.NORMALIZED) -> int:
    """Reference model of one controller run

    Mirrors the hardware phase by phase so either readout can be checked
    bit-exactly. With Readout.NORMALIZED the result equals x % MODULUS.
    """
    if not 0 <= x < 1 << INPUT_WIDTH:
        raise ValueError(f"x must fit in {INPUT_WIDTH} bits, got {x}")

    mask = (1 << REDUCE_WIDTH) - 1

    low = x & mask
    product = quotient_estimate(x) * MODULUS

    carry, partial_sum = carry_save(low, ~product & mask, 1)
    if readout is Readout.NORMALIZED:
        partial = ((carry << 1) + partial_sum) & mask
    else:
        partial = carry

    if partial >= MODULUS:
        partial -= MODULUS

    return partial & ((1 << WORD_WIDTH) - 1)
