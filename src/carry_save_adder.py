from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from full_adder import FullAdder


class CarrySaveAdder(wiring.Component):
    """Carry-save adder: three operands in, (sum, carry) out with no carry chain

    (carry << 1) + sum == a + b + c

    - Delay: 2-delta (one full adder) regardless of width
    """

    def __init__(self, width: int = 256):
        self.width = width

        super().__init__(
            {
                "a": In(width),
                "b": In(width),
                "c": In(width),
                "sum": Out(width),
                "carry": Out(width),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        for i in range(self.width):
            m.submodules[f"fa_{i}"] = fa = FullAdder()

            m.d.comb += fa.a.eq(self.a[i])
            m.d.comb += fa.b.eq(self.b[i])
            m.d.comb += fa.carry_in.eq(self.c[i])

            m.d.comb += self.sum[i].eq(fa.sum)
            m.d.comb += self.carry[i].eq(fa.carry_out)

        return m


def _wallace_level(operands, compress):
    reduced = []
    grouped = len(operands) - len(operands) % 3
    for i in range(0, grouped, 3):
        reduced.extend(compress(*operands[i : i + 3]))
    reduced.extend(operands[grouped:])
    return reduced


class CarrySaveAdderTree(wiring.Component):
    """Wallace tree of carry-save adders reducing N terms to a (sum, carry) pair

    Every level turns each full group of three operands into (sum, carry << 1),
    so operands grow one bit per level and nothing is truncated. The last
    level exposes its carry vector unshifted; `total` is the normalized sum.

    - Delay: 2-delta per level, levels = 1 for 3 terms
    """

    def __init__(self, width: int = 256, terms: int = 3):
        if terms < 3:
            raise ValueError(f"carry-save tree needs at least 3 terms, got {terms}")

        self.width = width
        self.term_count = terms

        widths = [width] * terms
        self.levels = 1
        while len(widths) > 3:
            widths = _wallace_level(widths, lambda *w: (max(w), max(w) + 1))
            self.levels += 1
        self.result_width = max(widths)

        super().__init__(
            {
                "terms": In(width).array(terms),
                "sum": Out(self.result_width),
                "carry": Out(self.result_width),
                "total": Out(self.result_width + 2),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        adders = []

        def compress(a, b, c):
            csa = CarrySaveAdder(width=max(len(a), len(b), len(c)))
            m.submodules[f"csa_{len(adders)}"] = csa
            adders.append(csa)

            m.d.comb += csa.a.eq(a)
            m.d.comb += csa.b.eq(b)
            m.d.comb += csa.c.eq(c)

            return csa.sum, csa.carry << 1

        operands = [self.terms[i] for i in range(self.term_count)]
        while len(operands) > 3:
            operands = _wallace_level(operands, compress)
        compress(*operands)

        final = adders[-1]
        m.d.comb += self.sum.eq(final.sum)
        m.d.comb += self.carry.eq(final.carry)
        m.d.comb += self.total.eq((self.carry << 1) + self.sum)

        return m
