import math
import random
from fractions import Fraction

import pytest

from radixfloat import *


def from_string(text):
    return Num.from_string(text, Context(10, precision=50), mode='free')


@pytest.fixture
def context():
    with local_context(DefaultContext) as context:
        yield context


@pytest.fixture
def quiet_context():
    with local_context(DefaultContext, traps=0) as context:
        yield context


class TestExp:

    @pytest.mark.parametrize('text, answer', (
        ('0', '1'),
        ('1', '2.71828183'),
        ('-1', '0.367879441'),
        ('2', '7.38905610'),
        ('0.5', '1.64872127'),
        ('Infinity', 'Infinity'),
        ('-Infinity', '0'),
    ))
    def test_exp(self, text, answer):
        context = Context(precision=9)
        assert from_string(text).exp(context).to_string() == answer

    def test_flags(self):
        context = Context(precision=9)
        from_string('1').exp(context)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED
        context.clear_flags()
        from_string('0').exp(context)
        assert context.flags == 0

    def test_overflow(self):
        context = Context(precision=9, emax=99, traps=0)
        assert from_string('10000').exp(context).is_infinite()
        assert context.flags & Flags.OVERFLOW

    def test_underflow(self):
        context = Context(precision=9, emin=-99, traps=0)
        result = from_string('-10000').exp(context)
        assert result.is_zero()
        assert context.flags & Flags.UNDERFLOW

    def test_tiny(self):
        context = Context(precision=9)
        assert from_string('1E-20').exp(context).to_string() == '1.00000000'
        context.rounding = ROUND_CEILING
        assert from_string('1E-20').exp(context).to_string() == '1.00000001'

    def test_exact_context(self):
        context = Context(exact=True)
        assert from_string('0').exp(context).to_string() == '1'
        with pytest.raises(Inexact):
            from_string('1').exp(context)

    @pytest.mark.parametrize('radix', (2, 3, 7, 16))
    def test_radix(self, radix):
        context = Context(radix, precision=80)
        result = Num(radix, 1, 1, 0).exp(context)
        assert float(result) == pytest.approx(math.e, rel=1e-15)


class TestLogarithms:

    @pytest.mark.parametrize('text, answer', (
        ('1', '0'),
        ('10', '2.30258509'),
        ('2', '0.693147181'),
        ('0.5', '-0.693147181'),
        ('0', '-Infinity'),
        ('Infinity', 'Infinity'),
    ))
    def test_ln(self, text, answer):
        context = Context(precision=9)
        assert from_string(text).ln(context).to_string() == answer

    def test_ln_negative(self, context):
        with pytest.raises(InvalidOperation):
            from_string('-1').ln()
        context.traps = 0
        assert from_string('-1').ln().is_qnan()

    @pytest.mark.parametrize('text, answer', (
        ('1000', '3'),
        ('0.001', '-3'),
        ('2', '0.301029996'),
        ('1', '0'),
        ('0', '-Infinity'),
    ))
    def test_log10(self, text, answer):
        context = Context(precision=9)
        assert from_string(text).log10(context).to_string() == answer

    @pytest.mark.parametrize('text, answer', (
        ('8', '3'),
        ('0.25', '-2'),
        ('10', '3.32192809'),
    ))
    def test_log2(self, text, answer):
        context = Context(precision=9)
        assert from_string(text).log2(context).to_string() == answer

    def test_rational_logs_exact(self):
        context = Context(precision=9)
        assert from_string('2').log(4, context).to_string() == '0.5'
        assert from_string('8').log(4, context).to_string() == '1.5'
        assert from_string('0.125').log(4, context).to_string() == '-1.5'
        assert context.flags == 0
        assert from_string('27').log(from_string('9'), context).to_string() == '1.5'

    def test_log_exact_context(self):
        context = Context(exact=True)
        assert from_string('1024').log2(context).to_string() == '10'
        with pytest.raises(Inexact):
            from_string('3').log2(context)

    def test_log_base(self, context):
        with pytest.raises(ValueError):
            from_string('2').log(1)
        with pytest.raises(ValueError):
            from_string('2').log(from_string('2.5'))
        with pytest.raises(TypeError):
            from_string('2').log(2.0)
        assert from_string('2').log().to_string() == from_string('2').ln().to_string()

    @pytest.mark.parametrize('radix', (2, 3, 7, 16))
    def test_radix(self, radix):
        context = Context(radix, precision=80)
        result = Num(radix, 1, 10, 0).ln(context)
        assert float(result) == pytest.approx(math.log(10), rel=1e-15)
        result = Num(radix, 1, 10, 0).log10(context)
        assert result == 1
        result = Num(radix, 1, 5, 0).log(3, context)
        assert float(result) == pytest.approx(math.log(5, 3), rel=1e-15)

    def test_context_methods(self):
        context = Context(precision=9)
        assert context.ln(10).to_string() == '2.30258509'
        assert context.log10('100').to_string() == '2'
        assert context.log(8, 2).to_string() == '3'
        assert context.exp(0).to_string() == '1'


class TestPower:

    @pytest.mark.parametrize('lhs, rhs, answer', (
        ('2', '10', '1024'),
        ('2', '-2', '0.25'),
        ('-2', '3', '-8'),
        ('-2', '2', '4'),
        ('1.0', '5', '1.00000'),
        ('10', '3', '1000'),
        ('0', '3', '0'),
        ('0', '-1', 'Infinity'),
        ('-0', '-1', '-Infinity'),
        ('Infinity', '-1', '0'),
        ('Infinity', '2', 'Infinity'),
        ('-Infinity', '3', '-Infinity'),
        ('5', '0', '1'),
        ('1.5', '2', '2.25'),
    ))
    def test_exact_results(self, lhs, rhs, answer):
        context = Context(precision=9)
        assert from_string(lhs).power(from_string(rhs), context=context).to_string() == answer
        assert not context.flags & Flags.INEXACT

    @pytest.mark.parametrize('lhs, rhs, answer', (
        ('2', '0.5', '1.41421356'),
        ('10', '0.5', '3.16227766'),
        ('2', '-0.5', '0.707106781'),
        ('3', '100', '5.15377521E+47'),
    ))
    def test_inexact_results(self, lhs, rhs, answer):
        context = Context(precision=9)
        assert from_string(lhs).power(from_string(rhs), context=context).to_string() == answer
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    def test_exact_fractional_power(self):
        context = Context(precision=9)
        result = from_string('4').power(from_string('0.5'), context=context)
        assert result.as_tuple() == (1, 200000000, -8)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    def test_invalid(self, quiet_context):
        assert from_string('0').power(0).is_qnan()
        assert from_string('-2').power(from_string('0.5')).is_qnan()
        assert quiet_context.flags == Flags.INVALID_OPERATION

    def test_exact_context(self):
        context = Context(exact=True)
        assert from_string('2').power(10, context=context).to_string() == '1024'
        assert from_string('2').power(-2, context=context).to_string() == '0.25'
        assert from_string('0.04').power(from_string('0.5'), context=context).to_string() \
            == '0.2'
        with pytest.raises(Inexact):
            from_string('2').power(from_string('0.5'), context=context)

    def test_overflow(self):
        context = Context(precision=9, emax=99, traps=0)
        assert from_string('10').power(200, context=context).is_infinite()
        assert context.flags & Flags.OVERFLOW

    @pytest.mark.parametrize('args, answer', (
        ((3, 4, 5), '1'),
        ((2, 10, 1000), '24'),
        ((-3, 3, 7), '-6'),
        ((7, 0, 5), '1'),
        ((10, 20, 7), '2'),
    ))
    def test_modulo(self, args, answer, context):
        base, exponent, modulus = (Num.from_int(arg) for arg in args)
        assert pow(base, exponent, modulus).to_string() == answer
        assert base.power(exponent, modulus).to_string() == answer

    @pytest.mark.parametrize('args', (
        ('2.5', '2', '3'),
        ('2', '-1', '3'),
        ('2', '2', '0'),
        ('0', '0', '3'),
    ))
    def test_modulo_invalid(self, args, quiet_context):
        base, exponent, modulus = (from_string(arg) for arg in args)
        assert base.power(exponent, modulus).is_qnan()
        assert quiet_context.flags == Flags.INVALID_OPERATION

    @pytest.mark.parametrize('radix', (2, 3, 7))
    def test_radix(self, radix):
        context = Context(radix, precision=80)
        result = Num(radix, 1, 3, 0).power(Num(radix, 1, 1, -1), context=context)
        # 3 ** (1/radix)
        assert float(result) == pytest.approx(3 ** (1 / radix), rel=1e-15)
        result = Num(radix, 1, 3, 0).power(5, context=context)
        assert result == 243

    @pytest.mark.parametrize('radix, precision, rounding, answer', (
        (3, 5, ROUND_HALF_EVEN, (1, 122, -5)),
        (3, 5, ROUND_HALF_UP, (1, 122, -5)),
        (3, 5, ROUND_HALF_DOWN, (1, 121, -5)),
        (5, 4, ROUND_HALF_EVEN, (1, 312, -4)),
        (5, 4, ROUND_HALF_UP, (1, 313, -4)),
        (7, 3, ROUND_HALF_EVEN, (1, 172, -3)),
        (7, 3, ROUND_HALF_DOWN, (1, 171, -3)),
    ))
    def test_odd_radix_tie(self, radix, precision, rounding, answer):
        # 1/2 is 0.111...(3), 0.222...(5) and 0.333...(7): exactly half a unit past a
        # number of any precision
        context = Context(radix, precision=precision, rounding=rounding)
        assert Num(radix, 1, 2, 0).power(-1, context=context).as_tuple() == answer
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    def test_odd_radix_root_tie(self):
        # 8 ** -(1/3) in radix 3 is 1/2
        context = Context(3, precision=5)
        result = Num(3, 1, 8, 0).power(Num(3, -1, 1, -1), context=context)
        assert result.as_tuple() == (1, 122, -5)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    @pytest.mark.parametrize('radix', (2, 3, 5, 10))
    def test_integer_powers_exact(self, radix):
        rng = random.Random(radix)
        for _ in range(300):
            rounding = rng.choice(ALL_ROUNDINGS)
            precision = rng.randint(1, 8)
            x = Num(radix, rng.choice((1, -1)), rng.randrange(1, radix ** 3), rng.randint(-3, 3))
            y = rng.choice((-1, 1)) * rng.randint(1, 5)
            context = Context(radix, precision=precision, rounding=rounding, traps=0)
            result = x.power(y, context=context)
            expected_context = context.derive(flags=0)
            expected = Num.from_fraction(Fraction(*x.as_integer_ratio()) ** y,
                                         expected_context)
            assert result == expected
            assert (context.flags & Flags.INEXACT) == (expected_context.flags & Flags.INEXACT)
