import math
import random

import pytest

from radixfloat import *
from radixfloat.trigonometry import *


def from_string(text):
    return Num.from_string(text, Context(10, precision=50), mode='free')


@pytest.fixture
def quiet_context():
    with local_context(DefaultContext, traps=0) as context:
        yield context


FUNCTIONS = ('sin', 'cos', 'tan', 'asin', 'acos', 'atan', 'sinh', 'cosh', 'tanh', 'asinh',
             'acosh', 'atanh')


class TestPi:

    @pytest.mark.parametrize('p, radix, answer', (
        (0, 10, 3),
        (5, 10, 314159),
        (4, 2, 50),
        (3, 16, 12867),
        (2, 3, 28),
        (30, 10, 3141592653589793238462643383279),
    ))
    def test_pi_digits(self, p, radix, answer):
        assert pi_digits(p, radix) == answer

    def test_pi_digits_cached(self):
        digits = pi_digits(200, 7)
        assert pi_digits(150, 7) == digits // 7 ** 50
        assert pi_digits(1, 7) == 21

    @pytest.mark.parametrize('precision, answer', (
        (1, '3'),
        (9, '3.14159265'),
        (28, '3.141592653589793238462643383'),
    ))
    def test_pi(self, precision, answer):
        context = Context(precision=precision)
        assert context.pi().to_string() == answer
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    def test_binary(self):
        assert float(IEEEDoubleContext.copy().pi()) == math.pi
        assert float(IEEESingleContext.copy().pi()) == 3.1415927410125732

    def test_rounding(self):
        context = Context(precision=9, rounding=ROUND_DOWN)
        assert context.pi().to_string() == '3.14159265'
        context.rounding = ROUND_UP
        assert context.pi().to_string() == '3.14159266'

    def test_e(self):
        assert Context(precision=28).e().to_string() == '2.718281828459045235360287471'
        assert float(IEEEDoubleContext.copy().e()) == math.e

    def test_exact_context(self):
        with pytest.raises(Inexact):
            Context(exact=True).pi()


class TestValues:

    @pytest.mark.parametrize('function, text, answer', (
        ('sin', '1', '0.8414709848078965066525023216'),
        ('cos', '1', '0.5403023058681397174009366074'),
        ('tan', '1', '1.557407724654902230506974807'),
        ('asin', '0.5', '0.5235987755982988730771072305'),
        ('acos', '0.5', '1.047197551196597746154214461'),
        ('atan', '1', '0.7853981633974483096156608458'),
        ('sinh', '1', '1.175201193643801456882381851'),
        ('cosh', '1', '1.543080634815243778477905621'),
        ('tanh', '1', '0.7615941559557648881194582826'),
        ('asinh', '1', '0.8813735870195430252326093250'),
        ('acosh', '2', '1.316957896924816708625046347'),
        ('atanh', '0.5', '0.5493061443340548456976226185'),
    ))
    def test_28_digits(self, function, text, answer):
        context = Context(precision=28)
        assert getattr(from_string(text), function)(context).to_string() == answer
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    @pytest.mark.parametrize('function, text, answer', (
        ('sin', '-1', '-0.841470985'),
        ('tan', '-1', '-1.55740772'),
        ('asin', '1', '1.57079633'),
        ('asin', '-1', '-1.57079633'),
        ('acos', '-1', '3.14159265'),
        ('acos', '0', '1.57079633'),
        ('acos', '-0.5', '2.09439510'),
        ('atan', '-1', '-0.785398163'),
        ('atan', '1E+30', '1.57079633'),
        ('sinh', '-1', '-1.17520119'),
        ('cosh', '-1', '1.54308063'),
        ('tanh', '-1', '-0.761594156'),
        ('atanh', '-0.5', '-0.549306144'),
    ))
    def test_signs(self, function, text, answer):
        context = Context(precision=9)
        assert getattr(from_string(text), function)(context).to_string() == answer

    def test_large_argument(self):
        context = Context(precision=9)
        assert from_string('1E22').sin(context).to_string() == '-0.852200850'

    def test_near_multiple_of_pi(self):
        # 355 is within 3E-5 of 113 * pi
        context = Context(precision=9)
        assert from_string('355').sin(context).to_string() == '-0.0000301443534'

    @pytest.mark.parametrize('radix', (2, 3, 7, 16))
    def test_radix(self, radix):
        context = Context(radix, precision=80)
        one = Num(radix, 1, 1, 0)
        assert float(one.sin(context)) == pytest.approx(math.sin(1), rel=1e-15)
        assert float(one.atan(context)) == pytest.approx(math.pi / 4, rel=1e-15)
        assert float(one.tanh(context)) == pytest.approx(math.tanh(1), rel=1e-15)


class TestSmallArguments:

    @pytest.mark.parametrize('function, rounding, answer', (
        ('sin', ROUND_HALF_EVEN, '1.00000000E-20'),
        ('sin', ROUND_DOWN, '9.99999999E-21'),
        ('sin', ROUND_UP, '1.00000000E-20'),
        ('tan', ROUND_UP, '1.00000001E-20'),
        ('tan', ROUND_DOWN, '1.00000000E-20'),
        ('atan', ROUND_DOWN, '9.99999999E-21'),
        ('asin', ROUND_CEILING, '1.00000001E-20'),
        ('sinh', ROUND_UP, '1.00000001E-20'),
        ('tanh', ROUND_FLOOR, '9.99999999E-21'),
        ('asinh', ROUND_DOWN, '9.99999999E-21'),
        ('atanh', ROUND_UP, '1.00000001E-20'),
    ))
    def test_odd(self, function, rounding, answer):
        context = Context(precision=9, rounding=rounding)
        assert getattr(from_string('1E-20'), function)(context).to_string() == answer
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    @pytest.mark.parametrize('function, rounding, answer', (
        ('cos', ROUND_HALF_EVEN, '1.00000000'),
        ('cos', ROUND_DOWN, '0.999999999'),
        ('cosh', ROUND_HALF_EVEN, '1.00000000'),
        ('cosh', ROUND_CEILING, '1.00000001'),
    ))
    def test_even(self, function, rounding, answer):
        context = Context(precision=9, rounding=rounding)
        assert getattr(from_string('-1E-20'), function)(context).to_string() == answer

    def test_moderately_small(self):
        # Too big for the shortcut, so the series does the work
        context = Context(precision=9)
        assert from_string('0.001').sin(context).to_string() == '0.000999999833'
        assert from_string('0.001').sinh(context).to_string() == '0.00100000017'

    def test_tanh_large(self):
        context = Context(precision=9)
        assert from_string('100').tanh(context).to_string() == '1.00000000'
        context.rounding = ROUND_DOWN
        assert from_string('100').tanh(context).to_string() == '0.999999999'
        assert from_string('-100').tanh(context).to_string() == '-0.999999999'


class TestSpecials:

    @pytest.mark.parametrize('function', ('sin', 'cos', 'tan'))
    def test_infinity(self, function, quiet_context):
        assert getattr(from_string('Infinity'), function)().is_nan()
        assert quiet_context.flags == Flags.INVALID_OPERATION

    @pytest.mark.parametrize('function, text', (
        ('asin', '1.0000001'),
        ('acos', '-2'),
        ('asin', '-Infinity'),
        ('acosh', '0.5'),
        ('acosh', '-Infinity'),
        ('atanh', '1.5'),
        ('atanh', 'Infinity'),
    ))
    def test_domain(self, function, text, quiet_context):
        assert getattr(from_string(text), function)().is_nan()
        assert quiet_context.flags == Flags.INVALID_OPERATION

    def test_domain_trap(self):
        with pytest.raises(InvalidOperation):
            from_string('2').asin(Context())

    @pytest.mark.parametrize('function', FUNCTIONS)
    def test_nan(self, function, quiet_context):
        assert getattr(from_string('NaN12'), function)().to_string() == 'NaN12'
        assert quiet_context.flags == 0
        assert getattr(from_string('sNaN'), function)().is_qnan()
        assert quiet_context.flags == Flags.INVALID_OPERATION

    @pytest.mark.parametrize('function, text, answer', (
        ('sin', '-0', '-0'),
        ('tan', '0.00', '0.00'),
        ('cos', '-0', '1'),
        ('asin', '-0', '-0'),
        ('acos', '1', '0'),
        ('atan', '0', '0'),
        ('sinh', '-0', '-0'),
        ('cosh', '0', '1'),
        ('tanh', '0', '0'),
        ('asinh', '-0', '-0'),
        ('acosh', '1.0', '0'),
        ('atanh', '0', '0'),
        ('sinh', 'Infinity', 'Infinity'),
        ('sinh', '-Infinity', '-Infinity'),
        ('cosh', '-Infinity', 'Infinity'),
        ('tanh', '-Infinity', '-1'),
        ('asinh', '-Infinity', '-Infinity'),
        ('acosh', 'Infinity', 'Infinity'),
        ('atan', 'Infinity', '1.57079633'),
        ('atan', '-Infinity', '-1.57079633'),
    ))
    def test_exact_results(self, function, text, answer):
        context = Context(precision=9)
        assert getattr(from_string(text), function)(context).to_string() == answer
        if 'atan' not in function or '0' in text:
            assert context.flags == 0

    def test_atanh_unit(self, quiet_context):
        assert from_string('-1').atanh() == Num.infinity(10, -1)
        assert quiet_context.flags == Flags.DIVISION_BY_ZERO
        with pytest.raises(DivisionByZero):
            from_string('1').atanh(Context())

    def test_overflow(self):
        context = Context(precision=9, emax=99, traps=0)
        assert from_string('1000').sinh(context) == Num.infinity(10)
        assert from_string('-1000').sinh(context) == Num.infinity(10, -1)
        assert from_string('1E+100').cosh(context) == Num.infinity(10)
        assert context.flags & Flags.OVERFLOW

    def test_exact_context(self):
        context = Context(exact=True)
        assert from_string('0').sin(context).to_string() == '0'
        assert from_string('0').cos(context).to_string() == '1'
        for function in FUNCTIONS:
            with pytest.raises(Inexact):
                getattr(from_string('0.5' if function != 'acosh' else '2'), function)(context)


class TestAtan2:

    @pytest.mark.parametrize('y, x, answer', (
        ('1', '1', '0.785398163'),
        ('1', '-1', '2.35619449'),
        ('-1', '-1', '-2.35619449'),
        ('-2', '1', '-1.10714872'),
        ('1', '0', '1.57079633'),
        ('-1', '-0', '-1.57079633'),
        ('0', '1', '0'),
        ('-0', '1', '-0'),
        ('0', '-0', '3.14159265'),
        ('-0', '-1', '-3.14159265'),
        ('-0', '0', '-0'),
        ('Infinity', 'Infinity', '0.785398163'),
        ('-Infinity', '-Infinity', '-2.35619449'),
        ('Infinity', '-5', '1.57079633'),
        ('5', 'Infinity', '0'),
        ('-5', '-Infinity', '-3.14159265'),
        ('1E-20', '1', '1.00000000E-20'),
    ))
    def test_atan2(self, y, x, answer):
        context = Context(precision=9)
        assert from_string(y).atan2(from_string(x), context).to_string() == answer

    def test_context(self):
        context = Context(precision=9)
        assert context.atan2(1, -1).to_string() == '2.35619449'

    def test_nan(self, quiet_context):
        assert from_string('1').atan2(from_string('NaN3')).to_string() == 'NaN3'
        assert from_string('sNaN').atan2(from_string('1')).is_qnan()
        assert quiet_context.flags == Flags.INVALID_OPERATION


class TestHypot:

    def test_exact(self):
        context = Context(precision=9)
        assert from_string('3').hypot(from_string('-4'), context).to_string() == '5'
        assert context.flags == 0

    def test_inexact(self):
        context = Context(precision=9)
        assert context.hypot(1, 1).to_string() == '1.41421356'
        assert context.flags == Flags.INEXACT | Flags.ROUNDED

    def test_tiny_leg(self):
        context = Context(precision=9)
        assert context.hypot(1, from_string('1E-30')).to_string() == '1.00000000'
        context.rounding = ROUND_CEILING
        assert context.hypot(from_string('1E-30'), 1).to_string() == '1.00000001'

    def test_exact_context(self):
        context = Context(exact=True)
        assert context.hypot(from_string('3E+20'), from_string('-4E+20')).to_string() == '5E+20'
        with pytest.raises(Inexact):
            context.hypot(1, from_string('1E-30'))

    def test_specials(self, quiet_context):
        inf, nan = from_string('-Infinity'), from_string('NaN')
        assert nan.hypot(inf) == Num.infinity(10)
        assert quiet_context.flags == 0
        assert nan.hypot(from_string('1')).is_nan()
        assert from_string('sNaN').hypot(inf).is_nan()
        assert quiet_context.flags == Flags.INVALID_OPERATION


def random_floats(generator, low, high, count):
    return [generator.uniform(low, high) for _ in range(count)]


class TestAgainstFloat:

    @pytest.mark.parametrize('function, low, high', (
        ('sin', -20, 20),
        ('cos', -20, 20),
        ('tan', -3, 3),
        ('asin', -1, 1),
        ('acos', -1, 1),
        ('atan', -50, 50),
        ('sinh', -20, 20),
        ('cosh', -20, 20),
        ('tanh', -5, 5),
        ('asinh', -100, 100),
        ('acosh', 1, 100),
        ('atanh', -1, 1),
    ))
    def test_double(self, function, low, high):
        generator = random.Random(function)
        context = IEEEDoubleContext.copy()
        for value in random_floats(generator, low, high, 40):
            result = getattr(Num.from_float(value, context), function)(context)
            assert float(result) == pytest.approx(getattr(math, function)(value), rel=4e-16)

    def test_atan2(self):
        generator = random.Random(2)
        context = IEEEDoubleContext.copy()
        for _ in range(40):
            y, x = random_floats(generator, -10, 10, 2)
            result = Num.from_float(y, context).atan2(Num.from_float(x, context), context)
            assert float(result) == pytest.approx(math.atan2(y, x), rel=4e-16)


class TestDirectedRounding:

    @pytest.mark.parametrize('radix', (2, 3, 10))
    @pytest.mark.parametrize('function', FUNCTIONS)
    def test_floor_ceiling_adjacent(self, radix, function):
        # A correctly rounded irrational result lies strictly between its floor and ceiling
        generator = random.Random(function + str(radix))
        for _ in range(20):
            precision = generator.randrange(1, 25)
            coefficient = generator.randrange(1, radix ** 6)
            value = Num(radix, generator.choice((-1, 1)), coefficient, -6)
            if function == 'acosh':
                value = value.copy_abs().add(1, Context(radix, exact=True))
            elif function in ('asin', 'acos', 'atanh'):
                value = value._replace(exponent=-7)
                if value.copy_abs()._cmp(Num(radix, 1, 1, 0)) >= 0:
                    continue
            floor = Context(radix, precision=precision, rounding=ROUND_FLOOR)
            ceiling = floor.derive(rounding=ROUND_CEILING)
            low = getattr(value, function)(floor)
            high = getattr(value, function)(ceiling)
            assert high == low.next_plus(floor)
            nearest = getattr(value, function)(floor.derive(rounding=ROUND_HALF_EVEN))
            assert nearest in (low, high)
