from amaranth import *
from amaranth.build import Platform
from amaranth.lib import enum, wiring
from amaranth.lib.wiring import In, Out

from carry_save_adder import CarrySaveAdderTree
from modulus import (
    INPUT_WIDTH,
    MODULUS,
    QUOTIENT_SHIFT,
    RECIPROCAL,
    REDUCE_WIDTH,
    WORD_WIDTH,
    Readout,
)
from multiplier import MULTIPLIERS


class State(enum.Enum, shape=3):
    INIT = 0
    TRANSFORM = 1
    MULTIPLY = 2
    REDUCE = 3
    FINALIZE = 4
    FINISH = 5


class ModularReducer(wiring.Component):
    """Computes x mod P for a 300-bit x in five clocks without a divider

    One run per `start` pulse accepted while idle (INIT or FINISH):

    - TRANSFORM: issue (x >> 255) * RECIPROCAL, keep the low bits of x as T
    - MULTIPLY:  high half of the product is the quotient estimate Q,
                 issue Q * P on the same multiplier
    - REDUCE:    carry-save {T, ~(Q * P), 1}, i.e. T - Q * P, which is < 2P
    - FINALIZE:  subtract P once if needed
    - FINISH:    `busy` low, `residue` valid until the next run

    `start` is ignored while busy. The multiplier strategy is picked by name
    from MULTIPLIERS; products are always captured one clock after issue.
    """

    ISSUE_LATENCY = 1

    def __init__(self, multiplier: str = "direct", readout: Readout = Readout.NORMALIZED):
        if multiplier not in MULTIPLIERS:
            raise ValueError(f"unknown multiplier strategy {multiplier!r}, expected one of {sorted(MULTIPLIERS)}")
        if MULTIPLIERS[multiplier].LATENCY > self.ISSUE_LATENCY:
            raise ValueError(
                f"multiplier {multiplier!r} needs {MULTIPLIERS[multiplier].LATENCY} clocks, "
                f"schedule allows {self.ISSUE_LATENCY}"
            )

        self.multiplier = multiplier
        self.readout = Readout(readout)

        super().__init__(
            {
                "x": In(INPUT_WIDTH),
                "start": In(1),
                "residue": Out(WORD_WIDTH),
                "busy": Out(1),
            }
        )

        self.state = Signal(State)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.mul = mul = MULTIPLIERS[self.multiplier](WORD_WIDTH)
        m.submodules.tree = tree = CarrySaveAdderTree(width=REDUCE_WIDTH, terms=3)

        # ---- Align Multiplier Output To The Issue Schedule ----
        product = mul.product
        product_valid = mul.valid
        for stage in range(self.ISSUE_LATENCY - mul.LATENCY):
            product_reg = Signal.like(mul.product, name=f"product_stage_{stage}")
            valid_reg = Signal(name=f"valid_stage_{stage}")
            m.d.sync += product_reg.eq(product)
            m.d.sync += valid_reg.eq(product_valid)
            product, product_valid = product_reg, valid_reg

        x_reg = Signal(INPUT_WIDTH)
        low = Signal(REDUCE_WIDTH)
        partial = Signal(REDUCE_WIDTH)
        residue = Signal(WORD_WIDTH)

        state = self.state

        with m.Switch(state):
            with m.Case(State.INIT):
                with m.If(self.start):
                    m.d.sync += x_reg.eq(self.x)
                    m.d.sync += state.eq(State.TRANSFORM)

            with m.Case(State.TRANSFORM):
                m.d.comb += self.busy.eq(1)

                m.d.comb += mul.a.eq(x_reg[QUOTIENT_SHIFT:])
                m.d.comb += mul.b.eq(RECIPROCAL)
                m.d.comb += mul.start.eq(1)

                m.d.sync += low.eq(x_reg[:REDUCE_WIDTH])
                m.d.sync += state.eq(State.MULTIPLY)

            with m.Case(State.MULTIPLY):
                m.d.comb += self.busy.eq(1)

                with m.If(product_valid):
                    quotient = product[WORD_WIDTH:]

                    m.d.comb += mul.a.eq(quotient)
                    m.d.comb += mul.b.eq(MODULUS)
                    m.d.comb += mul.start.eq(1)

                    m.d.sync += state.eq(State.REDUCE)

            with m.Case(State.REDUCE):
                m.d.comb += self.busy.eq(1)

                with m.If(product_valid):
                    m.d.comb += tree.terms[0].eq(low)
                    m.d.comb += tree.terms[1].eq(~product[:REDUCE_WIDTH])
                    m.d.comb += tree.terms[2].eq(1)

                    if self.readout is Readout.NORMALIZED:
                        m.d.sync += partial.eq(tree.total[:REDUCE_WIDTH])
                    else:
                        m.d.sync += partial.eq(tree.carry[:REDUCE_WIDTH])

                    m.d.sync += state.eq(State.FINALIZE)

            with m.Case(State.FINALIZE):
                m.d.comb += self.busy.eq(1)

                with m.If(partial >= MODULUS):
                    m.d.sync += residue.eq(partial - MODULUS)
                with m.Else():
                    m.d.sync += residue.eq(partial)

                m.d.sync += state.eq(State.FINISH)

            with m.Case(State.FINISH):
                with m.If(self.start):
                    m.d.sync += x_reg.eq(self.x)
                    m.d.sync += state.eq(State.TRANSFORM)
                with m.Else():
                    m.d.sync += state.eq(State.INIT)

            with m.Default():
                m.d.sync += state.eq(State.INIT)

        m.d.comb += self.residue.eq(residue)

        return m
