import random

import pytest

from radixfloat import *
from radixfloat.reader import commensurable


def single_context():
    return Context(2, precision=24, emin=-126, emax=127, traps=0)


class TestParseLiteral:

    @pytest.mark.parametrize('text, sign, digits, exponent', (
        ('-1.25E+3', -1, '125', 1),
        ('1.25e3', 1, '125', 1),
        ('+.5', 1, '5', -1),
        ('1.', 1, '1', 0),
        ('007', 1, '007', 0),
        ('0.00120', 1, '000120', -5),
        ('1@-2', 1, '1', -2),
    ))
    def test_numbers(self, text, sign, digits, exponent):
        parsed = parse_literal(text)
        assert (parsed.sign, parsed.digits, parsed.exponent) == (sign, digits, exponent)
        assert parsed.radix == 10
        assert parsed.special is None

    @pytest.mark.parametrize('text, sign, special, payload', (
        ('Inf', 1, 'I', ''),
        ('-infinity', -1, 'I', ''),
        ('NaN', 1, 'Q', ''),
        ('-nan7', -1, 'Q', '7'),
        ('sNaN12', 1, 'S', '12'),
    ))
    def test_specials(self, text, sign, special, payload):
        parsed = parse_literal(text)
        assert (parsed.sign, parsed.special, parsed.payload) == (sign, special, payload)

    def test_hex(self):
        parsed = parse_literal('0x1.8p-3')
        assert (parsed.radix, parsed.digits, parsed.exponent) == (2, '11000', -7)
        parsed = parse_literal('-0X.8')
        assert (parsed.sign, parsed.radix, parsed.digits, parsed.exponent) == (-1, 2, '1000', -4)

    def test_other_radices(self):
        parsed = parse_literal('ff.8@2', 16)
        assert (parsed.digits, parsed.exponent, parsed.coefficient()) == ('ff8', 1, 0xff8)
        parsed = parse_literal('12.1', 3)
        assert (parsed.digits, parsed.exponent, parsed.coefficient()) == ('121', -1, 16)
        assert parse_literal('12', 2) is None
        # e is a digit above radix 14
        assert parse_literal('1e5', 16).digits == '1e5'

    @pytest.mark.parametrize('text', ('', '.', '1.2.3', ' 1', '1 ', 'E5', '1E', '--1', 'Infinit',
                                      '0x', '1e+'))
    def test_invalid(self, text):
        assert parse_literal(text) is None

    def test_significant_digits(self):
        assert parse_literal('0.00120').significant_digits() == 3
        assert parse_literal('0.000').significant_digits() == 1
        assert parse_literal('1234').significant_digits() == 4


class TestReadLiteral:

    def test_fixed(self):
        context = Context(precision=3)
        assert read_literal('12345', context).as_tuple() == (1, 123, 2)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED
        context = Context(precision=3, rounding=ROUND_UP)
        assert read_literal('12341', context).as_tuple() == (1, 124, 2)

    def test_free(self):
        assert read_literal('1.50', Context(precision=1), mode='free').as_tuple() == (1, 150, -2)
        context = Context(2, precision=53)
        value = read_literal('0.1', context, mode='free')
        # Five bits tell one-digit decimals apart
        assert value.as_tuple() == (1, 26, -8)
        assert value.format(10, context=Context(2, precision=5)) == '0.1'

    def test_double(self):
        context = IEEEDoubleContext.derive(flags=0)
        assert read_literal('0.1', context) == Num.from_float(0.1, context)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED
        assert read_literal('1.7976931348623157e308', context) == \
            Num.from_float(1.7976931348623157e308, context)
        assert read_literal('5e-324', context) == Num.from_float(5e-324, context)

    def test_specials(self):
        context = Context(3)
        assert read_literal('-Inf', context) == Num.infinity(3, -1)
        assert read_literal('NaN123', context).as_tuple() == (1, 123, 'Q')
        assert read_literal('-sNaN', context).as_tuple() == (-1, 0, 'S')

    def test_hex(self):
        assert read_literal('0x1.8p-3', Context(2, precision=53)).as_tuple() == (1, 24, -7)
        context = Context(10)
        assert read_literal('0x1p-2', context) == Num(10, 1, 25, -2)
        assert not context.flags & Flags.INEXACT

    def test_syntax(self):
        with pytest.raises(ConversionSyntax):
            read_literal('1.2.3', Context())
        with pytest.raises(InvalidOperation):
            read_literal('one', Context())
        context = Context(traps=0)
        assert read_literal('1.2.3', context).is_qnan()
        assert context.flags == Flags.INVALID_OPERATION

    def test_mode(self):
        with pytest.raises(ValueError):
            read_literal('1', Context(), mode='loose')

    def test_radix_3(self):
        context = Context(3, precision=5)
        # 1/3 is exact in radix 3
        third = read_literal('0.1', context, radix=3)
        assert third.as_tuple() == (1, 1, -1)
        half = read_literal('0.5', context)
        # 0.11111... in radix 3 is a tie under 5 digits; it rounds to even
        assert half.as_tuple() == (1, 122, -5)
        assert context.flags == Flags.INEXACT | Flags.ROUNDED


class TestReader:

    @pytest.mark.parametrize('digits, exponent', (
        ('1', 0),
        ('1', -1),
        ('3', -1),
        ('123456789', -5),
        ('5', -45),
        ('34028235', 31),
        ('1', 39),
    ))
    def test_algorithms_agree(self, digits, exponent):
        results = [Reader(algorithm).read(single_context(), 1, digits, exponent, 10)
                   for algorithm in 'MRA']
        assert results[0].as_tuple() == results[1].as_tuple() == results[2].as_tuple()

    @pytest.mark.parametrize('input_radix, radix', (
        (10, 2), (2, 10), (3, 10), (10, 3), (16, 2), (7, 5),
    ))
    def test_algorithms_agree_random(self, input_radix, radix):
        generator = random.Random(input_radix * 100 + radix)
        for _ in range(300):
            rounding = generator.choice(ALL_ROUNDINGS)
            precision = generator.randrange(1, 21)
            coefficient = generator.randrange(1, input_radix ** generator.randrange(1, 25))
            exponent = generator.randrange(-30, 31)
            sign = generator.choice((-1, 1))
            results = []
            for algorithm in 'MRA':
                context = Context(radix, precision=precision, rounding=rounding, traps=0)
                value = Reader(algorithm).read(context, sign, coefficient, exponent,
                                               input_radix)
                # Algorithm A can signal ROUNDED on an exact intermediate
                results.append((value.as_tuple(), context.flags & ~Flags.ROUNDED))
            assert results[0] == results[1] == results[2], (
                rounding, precision, coefficient, exponent)

    @pytest.mark.parametrize('algorithm', (None, 'M', 'R', 'A'))
    @pytest.mark.parametrize('rounding', ALL_ROUNDINGS)
    def test_against_float(self, algorithm, rounding):
        context = single_context()
        context.rounding = rounding
        value = Reader(algorithm).read(context, -1, 1, -1, 10)
        nearest = Num.from_float(-0.1, single_context())._fix(single_context())
        if rounding in (ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_HALF_DOWN, ROUND_UP,
                        ROUND_FLOOR, ROUND_05UP):
            # -0.1 in single precision rounds away from zero to nearest.  A binary digit
            # is always 0 or 1 so 05up rounds away too
            assert value == nearest
        else:
            assert value == nearest.next_toward(0, single_context())

    def test_rounding_argument(self):
        context = Context(precision=3)
        reader = Reader()
        assert reader.read(context, 1, 12345, 0, 10).as_tuple() == (1, 123, 2)
        assert reader.read(context, 1, 12345, 0, 10, ROUND_UP).as_tuple() == (1, 124, 2)
        assert context.rounding == ROUND_HALF_EVEN
        assert reader.read(context, 1, 12350, 0, 10, ROUND_NEAREST).as_tuple() == (1, 124, 2)

    def test_digit_string(self):
        assert Reader().read(Context(2, precision=8), 1, 'ff', 0, 16).as_tuple() == (1, 255, 0)
        assert Reader().read(Context(2, precision=4), -1, 'ff', 0, 16).as_tuple() == \
            (-1, 8, 5)

    def test_zero(self):
        assert Reader('M').read(Context(2), -1, 0, 5, 10).as_tuple() == (-1, 0, 0)

    def test_exact_context(self):
        context = Context(2, exact=True)
        assert Reader('M').read(context, 1, 75, -2, 10).as_tuple() == (1, 3, -2)
        with pytest.raises(Inexact):
            Reader('R').read(context, 1, 1, -1, 10)

    def test_overflow(self):
        context = single_context()
        assert Reader('M').read(context, 1, 1, 39, 10).is_infinite()
        assert context.flags & Flags.OVERFLOW
        context = single_context()
        context.rounding = ROUND_DOWN
        assert Reader('R').read(context, 1, 1, 39, 10) == context.maximum_finite()

    def test_underflow(self):
        context = single_context()
        assert Reader('M').read(context, 1, 1, -50, 10).is_zero()
        assert context.flags & Flags.UNDERFLOW

    def test_invalid_algorithm(self):
        with pytest.raises(ValueError):
            Reader('Z')

    @pytest.mark.parametrize('a, b, answer', (
        (16, 2, True),
        (2, 8, True),
        (10, 10, True),
        (10, 2, False),
        (9, 27, False),
        (3, 81, True),
    ))
    def test_commensurable(self, a, b, answer):
        assert commensurable(a, b) is answer
