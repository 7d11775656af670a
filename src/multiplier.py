from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Multiplier(wiring.Component):
    """Port layout shared by the multiplier strategies

    `product` and `valid` appear LATENCY clocks after `a`, `b` and `start`
    are presented. Strategies differ in latency and area, never in value.
    """

    LATENCY = 0

    def __init__(self, width: int = 256):
        self.width = width

        super().__init__(
            {
                "a": In(width),
                "b": In(width),
                "start": In(1),
                "product": Out(2 * width),
                "valid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        raise NotImplementedError(f"{type(self).__name__} does not implement a multiplier")


class DirectMultiplier(Multiplier):
    """Registered multiply, result one clock after `start`"""

    LATENCY = 1

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        with m.If(self.start):
            m.d.sync += self.product.eq(self.a * self.b)
        m.d.sync += self.valid.eq(self.start)

        return m


class ShiftAddMultiplier(Multiplier):
    """Combinational shift-and-add array

    One partial product per bit of `b` (`a << i` when b[i] is set), summed
    pairwise so the adder depth is log2(width) rather than width.
    """

    LATENCY = 0

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        partials = [Mux(self.b[i], self.a << i, 0) for i in range(self.width)]

        level = 0
        while len(partials) > 1:
            paired = []
            for j in range(0, len(partials), 2):
                pair_sum = Signal(2 * self.width, name=f"pp_{level}_{j // 2}")
                m.d.comb += pair_sum.eq(sum(partials[j : j + 2]))
                paired.append(pair_sum)
            partials = paired
            level += 1

        m.d.comb += self.product.eq(partials[0])
        m.d.comb += self.valid.eq(self.start)

        return m


MULTIPLIERS = {
    "direct": DirectMultiplier,
    "shift_add": ShiftAddMultiplier,
}
