from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class FullAdder(wiring.Component):
    """1-bit full adder

    - Delay: 2-delta (XOR-XOR for sum, AND-OR for carry)
    """

    a: In(1)
    b: In(1)
    carry_in: In(1)
    sum: Out(1)
    carry_out: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.d.comb += self.sum.eq(self.a ^ self.b ^ self.carry_in)
        m.d.comb += self.carry_out.eq((self.a & self.b) | (self.a & self.carry_in) | (self.b & self.carry_in))

        return m
