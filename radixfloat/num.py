#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import copy
import logging
import sys
import threading
from collections import namedtuple
from enum import IntFlag
from fractions import Fraction
from math import ceil, floor, log

from .formatter import Formatter, TextFormat, digits_to_string
from .intmath import (
    DIGIT_CHARS, number_of_digits, int_to_string, strip_zeros, is_unambiguous,
    dlog, dlog_base, dexp, dpower, log_radix_exp_bound, ln_exp_bound, log_base_exp_bound,
    exact_power, rational_power, radix_exponent, exact_log,
)
from .rounding import (
    ROUND_CEILING, ROUND_FLOOR, ROUND_DOWN, ROUND_UP, ROUND_HALF_EVEN, ROUND_HALF_DOWN,
    ROUND_HALF_UP, ALL_ROUNDINGS, is_nearest, round_coefficient, round_up,
)
from .trigonometry import (
    unambiguous_coefficient, dpi, dsincos, dtan, datan, datan_ratio, dasin, dacos, dsinh, dcosh,
    dtanh, dasinh, dacosh, datanh,
)

__all__ = ('Context', 'Num', 'Flags', 'convert', 'convert_exact',
           'DefaultContext', 'BasicContext', 'ExtendedContext',
           'BinaryDefaultContext', 'BinaryExtendedContext',
           'IEEEHalfContext', 'IEEESingleContext', 'IEEEDoubleContext', 'IEEEQuadContext',
           'IEEEExtendedContext', 'Decimal32Context', 'Decimal64Context', 'Decimal128Context',
           'default_context', 'get_context', 'set_context', 'local_context',
           'NumError', 'InvalidOperation', 'ConversionSyntax', 'DivisionUndefined',
           'InvalidContext', 'DivisionByZero', 'DivisionImpossible', 'Inexact', 'Overflow',
           'Underflow', 'Clamped', 'Rounded', 'Subnormal', 'DEFAULT_TRAPS')

logger = logging.getLogger(__name__)

# Special value exponent tags
SPECIAL_INFINITY = 'I'
SPECIAL_QNAN = 'Q'
SPECIAL_SNAN = 'S'
SPECIALS = (SPECIAL_INFINITY, SPECIAL_QNAN, SPECIAL_SNAN)


# Condition flags.
class Flags(IntFlag):
    CLAMPED             = 0x001
    INVALID_OPERATION   = 0x002
    DIVISION_BY_ZERO    = 0x004
    DIVISION_IMPOSSIBLE = 0x008
    INEXACT             = 0x010
    OVERFLOW            = 0x020
    UNDERFLOW           = 0x040
    ROUNDED             = 0x080
    SUBNORMAL           = 0x100


ALL_FLAGS = Flags(0x1ff)
DEFAULT_TRAPS = Flags.DIVISION_BY_ZERO | Flags.OVERFLOW | Flags.INVALID_OPERATION


#
# Conditions
#

class NumError(ArithmeticError):
    '''All arithmetic conditions signalled by this package subclass from this.

    Conditions are signalled through Context.exception(), never raised directly.  That
    records flag_to_raise in the context's flags and raises the condition only if the flag
    is trapped; otherwise the operation continues with the quiet result returned by the
    default_result() classmethod.
    '''

    flag_to_raise = 'Nope! Fix your bug.'

    @classmethod
    def default_result(cls, context, *args):
        '''The quiet result, or None if the operation's own result stands.'''
        return None


class InvalidOperation(NumError):
    '''An operation with no useful result.  The quiet result is a NaN; if the first argument
    is a NaN, a quiet NaN with its sign and payload.'''

    flag_to_raise = Flags.INVALID_OPERATION

    @classmethod
    def default_result(cls, context, *args):
        if args and isinstance(args[0], Num) and args[0].is_nan():
            nan = args[0]
            return Num(nan.radix, nan.sign, nan.coefficient, SPECIAL_QNAN)._fix_nan(context)
        return Num.nan(context.radix)


class ConversionSyntax(InvalidOperation):
    '''A string is not a valid number literal.'''

    @classmethod
    def default_result(cls, context, *args):
        return Num.nan(context.radix)


class DivisionUndefined(InvalidOperation, ZeroDivisionError):
    '''Zero divided by zero.'''

    @classmethod
    def default_result(cls, context, *args):
        return Num.nan(context.radix)


class InvalidContext(InvalidOperation):
    '''The context is unsuitable for the operation.'''

    @classmethod
    def default_result(cls, context, *args):
        return Num.nan(context.radix)


class DivisionByZero(NumError, ZeroDivisionError):
    '''A finite non-zero dividend divided by zero.  The quiet result is an infinity with the
    sign given as argument.'''

    flag_to_raise = Flags.DIVISION_BY_ZERO

    @classmethod
    def default_result(cls, context, sign=1, *args):
        return Num.infinity(context.radix, sign)


class DivisionImpossible(NumError):
    '''An integer division or remainder whose quotient would have more digits than the
    precision.'''

    flag_to_raise = Flags.DIVISION_IMPOSSIBLE

    @classmethod
    def default_result(cls, context, *args):
        return Num.nan(context.radix)


class Inexact(NumError):
    '''Non-zero digits were discarded.  In an exact context the quiet result is a NaN.'''

    flag_to_raise = Flags.INEXACT

    @classmethod
    def default_result(cls, context, *args):
        if context.is_exact():
            return Num.nan(context.radix)
        return None


class Overflow(NumError):
    '''The adjusted exponent of a rounded result would exceed emax.  The quiet result is an
    infinity or the largest finite number, depending on the rounding mode and the sign
    given as argument.'''

    flag_to_raise = Flags.OVERFLOW

    @classmethod
    def default_result(cls, context, sign=1, *args):
        rounding = context.rounding
        if rounding in (ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_HALF_DOWN, ROUND_UP):
            return Num.infinity(context.radix, sign)
        if rounding == ROUND_CEILING and sign > 0:
            return Num.infinity(context.radix, sign)
        if rounding == ROUND_FLOOR and sign < 0:
            return Num.infinity(context.radix, sign)
        return context.maximum_finite(sign)


class Underflow(NumError):
    '''A subnormal result was rounded.'''

    flag_to_raise = Flags.UNDERFLOW


class Clamped(NumError):
    '''An exponent was altered to fit the context.'''

    flag_to_raise = Flags.CLAMPED


class Rounded(NumError):
    '''Digits were discarded, whether or not they were zero.'''

    flag_to_raise = Flags.ROUNDED


class Subnormal(NumError):
    '''The adjusted exponent of a result is below emin.'''

    flag_to_raise = Flags.SUBNORMAL


CONDITIONS = (Clamped, InvalidOperation, DivisionByZero, DivisionImpossible, Inexact,
              Overflow, Underflow, Rounded, Subnormal)


def to_flags(value):
    '''Convert a Flags value, an int, or an iterable of condition classes to Flags.'''
    if isinstance(value, int):
        return Flags(value)
    flags = Flags(0)
    for kind in value:
        if not (isinstance(kind, type) and issubclass(kind, NumError)):
            raise TypeError(f'{kind!r} is not a condition class')
        flags |= kind.flag_to_raise
    return flags


#
# Contexts
#

class Context:
    '''The arithmetic context for operations on numbers of one radix.  Carries the
    precision, rounding mode, exponent limits, and the trapped, raised and ignored
    condition flags.

    A precision of 0 means an exact context: no operation rounds, and any that cannot
    deliver an exact result signals Inexact, which such contexts trap.
    '''

    __slots__ = ('radix', 'precision', 'rounding', 'emin', 'emax', 'capitals', 'clamp',
                 'traps', 'flags', 'ignored_flags')

    def __init__(self, radix=10, **options):
        '''Options are as for update().  Those not given default to those of DefaultContext
        except for the radix.'''
        if not isinstance(radix, int):
            raise TypeError('radix must be an integer')
        if radix < 2:
            raise ValueError(f'invalid radix {radix}')
        self.radix = radix
        self.precision = 28
        self.rounding = ROUND_HALF_EVEN
        self.emin = -999999999
        self.emax = 999999999
        self.capitals = True
        self.clamp = False
        self.traps = DEFAULT_TRAPS
        self.flags = Flags(0)
        self.ignored_flags = Flags(0)
        self.update(**options)

    def update(self, *, precision=None, rounding=None, emin=None, emax=None, elimit=None,
               traps=None, flags=None, ignored_flags=None, capitals=None, clamp=None,
               exact=None):
        '''Change the given options in place.

        precision is a number of digits, or 0 or 'exact' for an exact context.  exact=True
        is the same as precision=0; exact='quiet' selects an exact context that does not
        trap Inexact.  elimit sets emin and emax to 1 - elimit and elimit (in some order);
        if only one of emin and emax is given the other is 1 minus it.
        '''
        was_exact = self.is_exact()
        quiet_exact = exact == 'quiet'
        if precision == 'exact':
            precision = 0
        if exact:
            if precision:
                raise ValueError('an exact context cannot have a precision')
            precision = 0
        elif exact is not None and precision is None and was_exact:
            raise ValueError('a precision is needed to make a context inexact')
        if precision is not None:
            if not isinstance(precision, int):
                raise TypeError('precision must be an integer')
            if precision < 0:
                raise ValueError(f'invalid precision {precision}')
            self.precision = precision

        if rounding is not None:
            if rounding not in ALL_ROUNDINGS:
                raise ValueError(f'invalid rounding mode {rounding!r}')
            self.rounding = rounding

        if elimit is not None:
            emin, emax = sorted((elimit, 1 - elimit))
        elif emin is not None and emax is None:
            emax = 1 - emin
        elif emax is not None and emin is None:
            emin = 1 - emax
        if emin is not None:
            if emin > emax:
                raise ValueError(f'emin {emin} exceeds emax {emax}')
            self.emin, self.emax = emin, emax

        if traps is not None:
            self.traps = to_flags(traps)
        if flags is not None:
            self.flags = to_flags(flags)
        if ignored_flags is not None:
            self.ignored_flags = to_flags(ignored_flags)
        if capitals is not None:
            self.capitals = bool(capitals)
        if clamp is not None:
            self.clamp = bool(clamp)

        if self.is_exact():
            if quiet_exact:
                self.traps &= ~Flags.INEXACT
            elif not was_exact or exact:
                self.traps |= Flags.INEXACT
            self.ignored_flags &= ~Flags.INEXACT
        elif was_exact:
            self.traps &= ~Flags.INEXACT

    def copy(self):
        '''Return a copy of the context.'''
        return copy.copy(self)

    def derive(self, **options):
        '''Return a copy of the context with the given options changed.'''
        context = self.copy()
        context.update(**options)
        return context

    def is_exact(self):
        return self.precision == 0

    def round_to_nearest(self):
        '''Return True if the rounding mode rounds to nearest (ignoring ties).'''
        return is_nearest(self.rounding)

    def etiny(self):
        '''The smallest exponent of a subnormal number.'''
        return self.emin - self.precision + 1

    def etop(self):
        '''The largest exponent of a number with precision digits.'''
        return self.emax - self.precision + 1

    def exception(self, kind, explanation='', *args):
        '''Signal the condition kind.  Returns its quiet result (which may be None), or
        raises it if trapped.  Ignored conditions are not recorded in the flags.'''
        flag = kind.flag_to_raise
        if self.ignored_flags & flag:
            return kind.default_result(self, *args)
        self.flags |= flag
        if self.traps & flag:
            raise kind(explanation)
        return kind.default_result(self, *args)

    def clear_flags(self):
        self.flags = Flags(0)

    def ignore_flags(self, *kinds):
        '''Ignore the given conditions.  Returns the ignored flags previously in force.'''
        saved = self.ignored_flags
        self.ignored_flags |= to_flags(kinds)
        return saved

    def regard_flags(self, *kinds):
        '''Stop ignoring the given conditions.'''
        self.ignored_flags &= ~to_flags(kinds)

    def ignore_all_flags(self):
        self.ignored_flags = ALL_FLAGS

    def _exact_only(self, what):
        '''The quiet result for a quantity undefined in an exact context, else None.'''
        if self.is_exact():
            return self.exception(InvalidOperation, f'{what} of an exact context')
        return None

    ##
    ## Characteristic values
    ##

    def maximum_coefficient(self):
        if self.is_exact():
            return self.exception(InvalidOperation, 'maximum coefficient of an exact context')
        return self.radix ** self.precision - 1

    def minimum_normalized_coefficient(self):
        if self.is_exact():
            return self.exception(InvalidOperation,
                                  'minimum normalized coefficient of an exact context')
        return self.radix ** (self.precision - 1)

    def maximum_nan_diagnostic_digits(self):
        if self.is_exact():
            return None
        return self.precision - 1 if self.clamp else self.precision

    def maximum_finite(self, sign=1):
        '''The largest finite number of the context with the given sign.'''
        return (self._exact_only('maximum finite')
                or Num(self.radix, sign, self.radix ** self.precision - 1, self.etop()))

    def minimum_normal(self, sign=1):
        return self._exact_only('minimum normal') or Num(self.radix, sign, 1, self.emin)

    def maximum_subnormal(self, sign=1):
        return (self._exact_only('maximum subnormal')
                or Num(self.radix, sign, self.radix ** (self.precision - 1) - 1, self.etiny()))

    def minimum_nonzero(self, sign=1):
        '''The smallest non-zero magnitude of the context, a subnormal.'''
        return self._exact_only('minimum nonzero') or Num(self.radix, sign, 1, self.etiny())

    def epsilon(self, sign=1):
        '''The difference between 1 and the next larger number.'''
        return self._exact_only('epsilon') or Num(self.radix, sign, 1, 1 - self.precision)

    def strict_epsilon(self, sign=1):
        '''The smallest number that, added to 1, gives a result other than 1 under the
        rounding mode.'''
        ans = self._exact_only('strict epsilon')
        if ans is not None:
            return ans
        radix, precision, rounding = self.radix, self.precision, self.rounding
        if rounding in (ROUND_DOWN, ROUND_FLOOR):
            return Num(radix, sign, 1, 1 - precision)
        if rounding in (ROUND_HALF_EVEN, ROUND_HALF_DOWN):
            return Num(radix, sign, 1 + radix ** precision // 2, 1 - 2 * precision)
        if rounding == ROUND_HALF_UP:
            return Num(radix, sign, radix ** precision // 2, 1 - 2 * precision)
        return self.minimum_nonzero(sign)

    def half_epsilon(self, sign=1):
        '''Half of epsilon: the largest relative error of rounding to nearest.'''
        return (self._exact_only('half epsilon')
                or Num(self.radix, sign, self.radix // 2, -self.precision))

    def representable_digits(self, base):
        '''The largest number of base-base digits any of which can be stored in the context
        and read back unchanged.'''
        if self.is_exact():
            return None
        if base == self.radix:
            return self.precision
        return floor((self.precision - 1) * log(self.radix) / log(base))

    def necessary_digits(self, base):
        '''The fewest number of base-base digits that distinguish all numbers of the
        context.'''
        if self.is_exact():
            return None
        if base == self.radix:
            return self.precision
        return ceil(self.precision * log(self.radix) / log(base)) + 1

    def zero(self, sign=1):
        return Num.zero(self.radix, sign)

    def infinity(self, sign=1):
        return Num.infinity(self.radix, sign)

    def nan(self):
        return Num.nan(self.radix)

    def create(self, value):
        '''Convert value to a number of this context, rounding it to the context.  value can
        be a Num, int, str, Fraction or float.'''
        if isinstance(value, Num):
            if value.radix != self.radix:
                return convert_exact(value, self)
            return value._fix(self)
        if isinstance(value, int):
            return Num.from_int(value, self.radix)._fix(self)
        if isinstance(value, str):
            from .reader import read_literal
            return read_literal(value, self, mode='fixed')
        if isinstance(value, Fraction):
            return Num.from_fraction(value, self)
        if isinstance(value, float):
            return Num.from_float(value, self)._fix(self)
        raise TypeError(f'cannot convert {value.__class__.__name__} to Num')

    ##
    ## Operations.  Operands are converted with create().
    ##

    def _operand(self, value):
        if isinstance(value, Num) and value.radix == self.radix:
            return value
        return self.create(value)

    def add(self, x, y):
        return self._operand(x).add(y, self)

    def subtract(self, x, y):
        return self._operand(x).subtract(y, self)

    def multiply(self, x, y):
        return self._operand(x).multiply(y, self)

    def divide(self, x, y):
        return self._operand(x).divide(y, self)

    def divide_int(self, x, y):
        return self._operand(x).divide_int(y, self)

    def divrem(self, x, y):
        return self._operand(x).divrem(y, self)

    def divmod(self, x, y):
        return self._operand(x).divmod(y, self)

    def div(self, x, y):
        return self._operand(x).div(y, self)

    def modulo(self, x, y):
        return self._operand(x).modulo(y, self)

    def remainder(self, x, y):
        return self._operand(x).remainder(y, self)

    def remainder_near(self, x, y):
        return self._operand(x).remainder_near(y, self)

    def fma(self, x, y, z):
        return self._operand(x).fma(y, z, self)

    def power(self, x, y, modulo=None):
        return self._operand(x).power(y, modulo, self)

    def sqrt(self, x):
        return self._operand(x).sqrt(self)

    def exp(self, x):
        return self._operand(x).exp(self)

    def ln(self, x):
        return self._operand(x).ln(self)

    def log10(self, x):
        return self._operand(x).log10(self)

    def log2(self, x):
        return self._operand(x).log2(self)

    def log(self, x, base=None):
        return self._operand(x).log(base, self)

    def pi(self):
        '''Pi rounded to the context.'''
        if self.is_exact():
            return self.exception(Inexact, 'pi is irrational')
        radix = self.radix
        return _approximate(self, 'pi', lambda places: dpi(1, 1, places, radix),
                            self.precision + 3)

    def e(self):
        '''e rounded to the context.'''
        return Num(self.radix, 1, 1, 0).exp(self)

    def sin(self, x):
        return self._operand(x).sin(self)

    def cos(self, x):
        return self._operand(x).cos(self)

    def tan(self, x):
        return self._operand(x).tan(self)

    def asin(self, x):
        return self._operand(x).asin(self)

    def acos(self, x):
        return self._operand(x).acos(self)

    def atan(self, x):
        return self._operand(x).atan(self)

    def atan2(self, y, x):
        return self._operand(y).atan2(self._operand(x), self)

    def hypot(self, x, y):
        return self._operand(x).hypot(self._operand(y), self)

    def sinh(self, x):
        return self._operand(x).sinh(self)

    def cosh(self, x):
        return self._operand(x).cosh(self)

    def tanh(self, x):
        return self._operand(x).tanh(self)

    def asinh(self, x):
        return self._operand(x).asinh(self)

    def acosh(self, x):
        return self._operand(x).acosh(self)

    def atanh(self, x):
        return self._operand(x).atanh(self)

    def compare(self, x, y):
        return self._operand(x).compare(y, self)

    def plus(self, x):
        return self._operand(x).plus(self)

    def minus(self, x):
        return self._operand(x).minus(self)

    def abs(self, x):
        return self._operand(x).abs(self)

    def next_plus(self, x):
        return self._operand(x).next_plus(self)

    def next_minus(self, x):
        return self._operand(x).next_minus(self)

    def next_toward(self, x, y):
        return self._operand(x).next_toward(y, self)

    def quantize(self, x, y):
        return self._operand(x).quantize(y, self)

    def rescale(self, x, exponent):
        return self._operand(x).rescale(exponent, self)

    def reduce(self, x):
        return self._operand(x).reduce(self)

    def normalize(self, x):
        return self._operand(x).normalize(self)

    def logb(self, x):
        return self._operand(x).logb(self)

    def scaleb(self, x, y):
        return self._operand(x).scaleb(y, self)

    def to_integral_exact(self, x):
        return self._operand(x).to_integral_exact(self)

    def to_integral_value(self, x):
        return self._operand(x).to_integral_value(self)

    def ulp(self, x=None):
        '''The unit in the last place of x, or of 1 if x is None.'''
        if x is None:
            x = Num(self.radix, 1, 1, 0)
        return self._operand(x).ulp(self)

    def number_class(self, x):
        return self._operand(x).number_class(self)

    def to_string(self, x, eng=False):
        return self._operand(x).to_string(eng, self)

    def to_eng_string(self, x):
        return self._operand(x).to_eng_string(self)

    def __repr__(self):
        return (f'<Context radix={self.radix} precision={self.precision} '
                f'rounding={self.rounding} emin={self.emin} emax={self.emax} '
                f'capitals={self.capitals} clamp={self.clamp} flags={self.flags!r} '
                f'traps={self.traps!r}>')


#
# Numbers
#

NumTuple = namedtuple('NumTuple', 'sign coefficient exponent')


def _drop_digits(coefficient, drop, digits, radix, rounding, sign, tail=None):
    '''round_coefficient() for a coefficient of the given number of digits, without forming
    huge powers when every digit is dropped.

    tail, if not None, is a (remainder, divisor) pair: a non-zero fraction of a unit of
    the last digit that lies below the coefficient and is discarded with the dropped
    digits.
    '''
    if coefficient and drop > digits:
        # All is lost: a non-zero value below half a unit stands in for the digits
        coefficient, drop, tail = 1, 2, None
    if tail is None:
        return round_coefficient(coefficient, drop, radix, rounding, sign)
    remainder, divisor = tail
    power = radix ** drop
    kept, low = divmod(coefficient, power)
    if round_up(rounding, sign, kept, low * divisor + remainder, power * divisor, radix):
        return kept + 1, 1
    return kept, -1


def _align(x, y, precision):
    '''Return finite non-zero x and y rewritten with a common exponent.

    With a precision, an operand entirely below three digits past the precision of the
    other is replaced by a single unit at that position: adding either has the same
    effect after rounding, and the exponent difference stays small.  Cancellation can
    lower the result's leading digit by one place, and the unit still lies strictly
    between rounding boundaries of the result.
    '''
    swapped = x.exponent < y.exponent
    if swapped:
        x, y = y, x
    if precision:
        exp = x.exponent + min(-2, x.number_of_digits() - precision - 3)
        if y.adjusted_exponent() < exp:
            y = Num(y.radix, y.sign, 1, exp)
    x = Num(x.radix, x.sign, x.coefficient * x.radix ** (x.exponent - y.exponent), y.exponent)
    return (y, x) if swapped else (x, y)


def full_precision(num, context):
    '''Give the coefficient of a finite non-zero number exactly precision digits, or for a
    subnormal the exponent etiny, by padding or removing trailing zeroes.  A number
    needing more digits than that is returned unchanged.  Signals nothing.'''
    if num.is_special() or not num.coefficient:
        return num
    radix = num.radix
    if num.adjusted_exponent() < context.emin:
        exponent = context.etiny()
    else:
        exponent = num.adjusted_exponent() - context.precision + 1
    if num.exponent < exponent:
        coefficient, remainder = divmod(num.coefficient, radix ** (exponent - num.exponent))
        if remainder:
            return num
        return Num(radix, num.sign, coefficient, exponent)
    shift = num.exponent - exponent
    return Num(radix, num.sign, num.coefficient * radix ** shift, exponent)


def _approximate(context, name, kernel, places):
    '''Round the value kernel(places) approximates to the context, widening places until
    the approximation is unambiguous.  kernel returns (value, error, exponent) as the
    functions of trigonometry do.'''
    radix, p = context.radix, context.precision
    step = 3
    while True:
        value, error, exponent = kernel(places)
        found = unambiguous_coefficient(value, error, p, radix)
        if found is not None:
            break
        logger.debug('%s: %d places are ambiguous, retrying', name, places)
        places += step
        step *= 2
    coefficient, shift = found
    return Num(radix, -1 if value < 0 else 1, coefficient, exponent + shift)._fix(context)


class Num(namedtuple('Num', 'radix sign coefficient exponent')):
    '''A floating point number of any radix.

    Finite numbers have the value sign * coefficient * radix**exponent, where sign is 1 or
    -1 and coefficient a non-negative integer.  The coefficient is not normalized:
    trailing zeroes record precision, so 1.0 and 1.00 are different (but equal) numbers.

    Infinities have exponent 'I' and coefficient zero; quiet NaNs have exponent 'Q' and
    signalling NaNs exponent 'S', in both cases with the payload as coefficient.

    Numbers are immutable.  Operations take an optional context, which must have the same
    radix; if omitted the current context for the radix is used.  Numbers of different
    radices never mix.
    '''

    __slots__ = ()

    def __new__(cls, radix, sign, coefficient, exponent):
        '''Validate and create a number.'''
        if not isinstance(radix, int):
            raise TypeError('radix must be an integer')
        if radix < 2:
            raise ValueError(f'invalid radix {radix}')
        if sign not in (1, -1):
            raise ValueError(f'sign must be 1 or -1, not {sign!r}')
        if not isinstance(coefficient, int):
            raise TypeError('coefficient must be an integer')
        if coefficient < 0:
            raise ValueError(f'coefficient {coefficient:,d} is negative')
        if isinstance(exponent, str):
            if exponent not in SPECIALS:
                raise ValueError(f'invalid special exponent {exponent!r}')
            if exponent == SPECIAL_INFINITY and coefficient:
                raise ValueError('infinities have no payload')
        elif not isinstance(exponent, int):
            raise TypeError('exponent must be an integer or a special tag')
        return super().__new__(cls, radix, sign, coefficient, exponent)

    ##
    ## Constructors
    ##

    @classmethod
    def zero(cls, radix=10, sign=1, exponent=0):
        return cls(radix, sign, 0, exponent)

    @classmethod
    def infinity(cls, radix=10, sign=1):
        return cls(radix, sign, 0, SPECIAL_INFINITY)

    @classmethod
    def nan(cls, radix=10, sign=1, payload=0, signalling=False):
        return cls(radix, sign, payload, SPECIAL_SNAN if signalling else SPECIAL_QNAN)

    @classmethod
    def from_int(cls, value, radix=10):
        '''Convert an integer exactly.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        return cls(radix, -1 if value < 0 else 1, abs(value), 0)

    @classmethod
    def from_fraction(cls, value, context=None):
        '''Convert a Fraction (or anything Fraction accepts), correctly rounded to the
        context.'''
        context = context or get_context()
        value = Fraction(value)
        numerator = cls.from_int(value.numerator, context.radix)
        return numerator.divide(cls.from_int(value.denominator, context.radix), context)

    @classmethod
    def from_float(cls, value, context=None):
        '''Convert a float to the radix of context.  The conversion is exact if the radix is
        even; otherwise the result is correctly rounded to the context.'''
        if isinstance(value, int):
            value = float(value)
        if not isinstance(value, float):
            raise TypeError('from_float requires a float')
        context = context or get_context()
        radix = context.radix
        sign = -1 if str(value).startswith('-') else 1
        if value != value:
            return cls.nan(radix, sign)
        if value in (float('inf'), float('-inf')):
            return cls.infinity(radix, sign)
        numerator, denominator = abs(value).as_integer_ratio()
        if denominator == 1:
            return cls(radix, sign, numerator, 0)
        # The denominator is a power of 2
        shift = denominator.bit_length() - 1
        if radix == 2:
            return cls(radix, sign, numerator, -shift)
        if radix % 2 == 0:
            return cls(radix, sign, numerator * (radix // 2) ** shift, -shift)
        return cls.from_fraction(Fraction(numerator * sign, denominator), context)

    @classmethod
    def from_string(cls, text, context=None, mode='free'):
        '''Read a number literal.  See reader.read_literal().'''
        from .reader import read_literal
        return read_literal(text, context or get_context(), mode)

    ##
    ## Non-computational operations.  These are never exceptional.
    ##

    def is_special(self):
        return isinstance(self.exponent, str)

    def is_finite(self):
        return not isinstance(self.exponent, str)

    def is_infinite(self):
        return self.exponent == SPECIAL_INFINITY

    def is_nan(self):
        return self.exponent == SPECIAL_QNAN or self.exponent == SPECIAL_SNAN

    def is_qnan(self):
        return self.exponent == SPECIAL_QNAN

    def is_snan(self):
        return self.exponent == SPECIAL_SNAN

    def is_zero(self):
        '''Return True if the value is zero regardless of sign.'''
        return not self.coefficient and self.is_finite()

    def is_signed(self):
        '''Return True if the sign is negative, even for zeroes and NaNs.'''
        return self.sign < 0

    def is_normal(self, context=None):
        '''Return True if the value is finite, non-zero and not subnormal.'''
        context = self._context(context)
        return (self.is_finite() and bool(self.coefficient)
                and self.adjusted_exponent() >= context.emin)

    def is_subnormal(self, context=None):
        context = self._context(context)
        return (self.is_finite() and bool(self.coefficient)
                and self.adjusted_exponent() < context.emin)

    def is_integral(self):
        '''Return True if the value is a finite integer.'''
        if self.is_special():
            return False
        if self.exponent >= 0 or not self.coefficient:
            return True
        return self.coefficient % self.radix ** -self.exponent == 0

    def _integer_parity(self):
        # Parity of an integral value
        if self.exponent >= 0:
            if self.radix % 2 == 0 and self.exponent > 0:
                return 0
            return self.coefficient % 2
        return (self.coefficient // self.radix ** -self.exponent) % 2

    def is_even(self):
        return self.is_integral() and self._integer_parity() == 0

    def is_odd(self):
        return self.is_integral() and self._integer_parity() == 1

    def number_of_digits(self):
        '''The number of digits of the coefficient; zero for infinities and NaNs.'''
        if self.is_special():
            return 0
        return number_of_digits(self.coefficient, self.radix)

    def adjusted_exponent(self):
        '''The exponent of the most significant digit; zero for infinities and NaNs.'''
        if self.is_special():
            return 0
        return self.exponent + self.number_of_digits() - 1

    def digits(self):
        '''The digits of the coefficient as a list, most significant first.'''
        digits = []
        coefficient = self.coefficient
        while coefficient >= self.radix:
            coefficient, digit = divmod(coefficient, self.radix)
            digits.append(digit)
        digits.append(coefficient)
        digits.reverse()
        return digits

    def number_class(self, context=None):
        '''Return a string describing the class of the number.'''
        sign = '-' if self.sign < 0 else '+'
        if self.is_infinite():
            return sign + 'Infinity'
        if self.is_snan():
            return 'sNaN'
        if self.is_nan():
            return 'NaN'
        if not self.coefficient:
            return sign + 'Zero'
        if self.is_subnormal(context):
            return sign + 'Subnormal'
        return sign + 'Normal'

    def as_tuple(self):
        '''Returns a NumTuple: (sign, coefficient, exponent).  Special exponents are
        'I', 'Q' and 'S' with the payload as coefficient.'''
        return NumTuple(self.sign, self.coefficient, self.exponent)

    def as_integer_ratio(self):
        '''Return a pair of integers in lowest terms whose ratio is the value.'''
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer ratio')
        if self.is_infinite():
            raise OverflowError('cannot convert infinity to integer ratio')
        if self.exponent >= 0:
            return self.sign * self.coefficient * self.radix ** self.exponent, 1
        ratio = Fraction(self.sign * self.coefficient, self.radix ** -self.exponent)
        return ratio.numerator, ratio.denominator

    def copy_abs(self):
        return self._replace(sign=1)

    def copy_negate(self):
        return self._replace(sign=-self.sign)

    def copy_sign(self, other):
        '''Return a copy with the sign of other.'''
        return self._replace(sign=self._convert_other(other).sign)

    def same_quantum(self, other):
        '''Return True if other has the same exponent.  Infinities have the same quantum as
        each other, as do NaNs.'''
        other = self._convert_other(other)
        if self.is_special() or other.is_special():
            return ((self.is_nan() and other.is_nan())
                    or (self.is_infinite() and other.is_infinite()))
        return self.exponent == other.exponent

    ##
    ## Helpers
    ##

    def _context(self, context):
        if context is None:
            return get_context(self.radix)
        if context.radix != self.radix:
            raise TypeError(f'a radix {self.radix} number cannot be used with a radix '
                            f'{context.radix} context')
        return context

    def _convert_other(self, other):
        if isinstance(other, Num):
            if other.radix != self.radix:
                raise TypeError(f'cannot combine radix {self.radix} and radix '
                                f'{other.radix} numbers')
            return other
        if isinstance(other, int):
            return Num.from_int(other, self.radix)
        raise TypeError(f'cannot convert {other.__class__.__name__} to Num')

    def _operand(self, other):
        '''For Python operators.'''
        if isinstance(other, (Num, int)):
            return self._convert_other(other)
        return NotImplemented

    def _check_nans(self, other=None, context=None):
        '''Return the result for NaN operands, or None if neither is a NaN.  Signalling NaNs
        signal InvalidOperation.'''
        if self.is_nan() or (other is not None and other.is_nan()):
            if self.is_snan():
                return context.exception(InvalidOperation, 'sNaN', self)
            if other is not None and other.is_snan():
                return context.exception(InvalidOperation, 'sNaN', other)
            if self.is_nan():
                return self._fix_nan(context)
            return other._fix_nan(context)
        return None

    def _fix_nan(self, context):
        '''Trim the payload to the digits the context allows.'''
        limit = context.maximum_nan_diagnostic_digits()
        if limit is not None and self.coefficient >= self.radix ** limit:
            return self._replace(coefficient=self.coefficient % self.radix ** limit)
        return self

    def _is_one(self):
        if self.sign < 0 or self.is_special() or not self.coefficient:
            return False
        coefficient, zeros = strip_zeros(self.coefficient, self.radix)
        return coefficient == 1 and self.exponent + zeros == 0

    def _fix(self, context, tail=None):
        '''Round the number to the context, signalling as appropriate.  Every computed
        result passes through here.

        An inexact result is passed with tail, the (remainder, divisor) fraction of a unit
        that lies below its coefficient; the coefficient must then have more digits than
        the precision.'''
        if self.is_special():
            if self.is_nan():
                return self._fix_nan(context)
            return self
        if context.is_exact():
            return self

        radix = self.radix
        etiny, etop = context.etiny(), context.etop()
        if not self.coefficient:
            exp_max = etop if context.clamp else context.emax
            new_exp = min(max(self.exponent, etiny), exp_max)
            if new_exp != self.exponent:
                context.exception(Clamped)
                return self._replace(exponent=new_exp)
            return self

        digits = self.number_of_digits()
        # The smallest exponent at which the number fits the precision
        exp_min = digits + self.exponent - context.precision
        if exp_min > etop:
            context.exception(Inexact)
            context.exception(Rounded)
            return context.exception(Overflow, 'above emax', self.sign)

        is_subnormal = exp_min < etiny
        if is_subnormal:
            exp_min = etiny

        if self.exponent < exp_min:
            if is_subnormal:
                context.exception(Subnormal)
            context.exception(Rounded)
            coefficient, changed = _drop_digits(self.coefficient, exp_min - self.exponent,
                                                digits, radix, context.rounding, self.sign,
                                                tail)
            ans = Num(radix, self.sign, coefficient, exp_min)
            if changed:
                context.exception(Inexact)
                if is_subnormal:
                    context.exception(Underflow)
                    if not coefficient:
                        context.exception(Clamped)
                elif coefficient == radix ** context.precision:
                    # A carry; the number may now overflow
                    if exp_min < etop:
                        ans = Num(radix, self.sign, coefficient // radix, exp_min + 1)
                    else:
                        return context.exception(Overflow, 'above emax', self.sign)
            return ans

        if is_subnormal:
            context.exception(Subnormal)

        if context.clamp and self.exponent > etop:
            context.exception(Clamped)
            return Num(radix, self.sign, self.coefficient * radix ** (self.exponent - etop),
                       etop)
        return self

    def _rescale(self, exponent, rounding):
        '''Return the number with the given exponent, rounding if digits are lost.  Signals
        nothing.'''
        if self.is_special():
            return self
        if not self.coefficient:
            return Num(self.radix, self.sign, 0, exponent)
        if self.exponent >= exponent:
            return Num(self.radix, self.sign,
                       self.coefficient * self.radix ** (self.exponent - exponent), exponent)
        coefficient, _ = _drop_digits(self.coefficient, exponent - self.exponent,
                                      self.number_of_digits(), self.radix, rounding, self.sign)
        return Num(self.radix, self.sign, coefficient, exponent)

    def _cmp(self, other):
        '''Compare two non-NaN numbers, returning -1, 0 or 1.'''
        if self.is_infinite() or other.is_infinite():
            self_inf = self.sign if self.is_infinite() else 0
            other_inf = other.sign if other.is_infinite() else 0
            return (self_inf > other_inf) - (self_inf < other_inf)

        if not self.coefficient:
            return 0 if not other.coefficient else -other.sign
        if not other.coefficient:
            return self.sign
        if self.sign != other.sign:
            return self.sign

        self_adjusted = self.adjusted_exponent()
        other_adjusted = other.adjusted_exponent()
        if self_adjusted == other_adjusted:
            lhs, rhs = self.coefficient, other.coefficient
            if self.exponent > other.exponent:
                lhs *= self.radix ** (self.exponent - other.exponent)
            else:
                rhs *= self.radix ** (other.exponent - self.exponent)
            return ((lhs > rhs) - (lhs < rhs)) * self.sign
        if self_adjusted > other_adjusted:
            return self.sign
        return -self.sign

    ##
    ## Arithmetic
    ##

    def add(self, other, context=None):
        '''Return self + other, correctly rounded.'''
        other = self._convert_other(other)
        context = self._context(context)
        radix = self.radix

        if self.is_special() or other.is_special():
            ans = self._check_nans(other, context)
            if ans is not None:
                return ans
            if self.is_infinite():
                if other.is_infinite() and self.sign != other.sign:
                    return context.exception(InvalidOperation, '-Infinity + Infinity')
                return self
            return other

        exp = min(self.exponent, other.exponent)
        negative_zero = context.rounding == ROUND_FLOOR and self.sign != other.sign

        if not self.coefficient and not other.coefficient:
            sign = -1 if negative_zero or (self.sign < 0 and other.sign < 0) else 1
            return Num(radix, sign, 0, exp)._fix(context)
        if not self.coefficient:
            if not context.is_exact():
                exp = max(exp, other.exponent - context.precision - 1)
            return other._rescale(exp, context.rounding)._fix(context)
        if not other.coefficient:
            if not context.is_exact():
                exp = max(exp, self.exponent - context.precision - 1)
            return self._rescale(exp, context.rounding)._fix(context)

        op1, op2 = _align(self, other, context.precision)
        if op1.sign != op2.sign:
            if op1.coefficient == op2.coefficient:
                return Num(radix, -1 if negative_zero else 1, 0, exp)._fix(context)
            if op1.coefficient < op2.coefficient:
                op1, op2 = op2, op1
            coefficient = op1.coefficient - op2.coefficient
        else:
            coefficient = op1.coefficient + op2.coefficient
        return Num(radix, op1.sign, coefficient, op1.exponent)._fix(context)

    def subtract(self, other, context=None):
        '''Return self - other, correctly rounded.'''
        return self.add(self._convert_other(other).copy_negate(), context)

    def multiply(self, other, context=None):
        '''Return self * other, correctly rounded.'''
        other = self._convert_other(other)
        context = self._context(context)
        sign = self.sign * other.sign

        if self.is_special() or other.is_special():
            ans = self._check_nans(other, context)
            if ans is not None:
                return ans
            if self.is_infinite():
                if other.is_zero():
                    return context.exception(InvalidOperation, 'Infinity * 0')
                return Num.infinity(self.radix, sign)
            if self.is_zero():
                return context.exception(InvalidOperation, '0 * Infinity')
            return Num.infinity(self.radix, sign)

        return Num(self.radix, sign, self.coefficient * other.coefficient,
                   self.exponent + other.exponent)._fix(context)

    def divide(self, other, context=None):
        '''Return self / other, correctly rounded.  Exact quotients take the exponent
        closest to the ideal exponent, the difference of the operands' exponents.'''
        other = self._convert_other(other)
        context = self._context(context)
        radix = self.radix
        sign = self.sign * other.sign

        if self.is_special() or other.is_special():
            ans = self._check_nans(other, context)
            if ans is not None:
                return ans
            if self.is_infinite():
                if other.is_infinite():
                    return context.exception(InvalidOperation, 'Infinity / Infinity')
                return Num.infinity(radix, sign)
            context.exception(Clamped, 'division by infinity')
            return Num(radix, sign, 0, context.etiny())

        if not other.coefficient:
            if not self.coefficient:
                return context.exception(DivisionUndefined, '0 / 0')
            return context.exception(DivisionByZero, 'x / 0', sign)

        ideal_exp = self.exponent - other.exponent
        if not self.coefficient:
            return Num(radix, sign, 0, ideal_exp)._fix(context)

        if context.is_exact():
            # Enough digits for any terminating quotient
            precision = self.number_of_digits() + other.coefficient.bit_length() + 2
        else:
            precision = context.precision
        shift = other.number_of_digits() - self.number_of_digits() + precision + 1
        exp = ideal_exp - shift
        if shift >= 0:
            divisor = other.coefficient
            coefficient, remainder = divmod(self.coefficient * radix ** shift, divisor)
        else:
            divisor = other.coefficient * radix ** -shift
            coefficient, remainder = divmod(self.coefficient, divisor)
        if remainder:
            if context.is_exact():
                return context.exception(Inexact, 'inexact division')
            # The quotient has a guard digit; the remainder goes with it exactly, as in an
            # odd radix it can be a tie
            return Num(radix, sign, coefficient, exp)._fix(context, (remainder, divisor))
        else:
            while exp < ideal_exp and coefficient % radix == 0:
                coefficient //= radix
                exp += 1

        return Num(radix, sign, coefficient, exp)._fix(context)

    def _division_specials(self, other, context, want_quotient, want_remainder):
        '''Return the (quotient, remainder) pair for NaN, infinite and zero-divisor cases,
        else None.  Only the wanted results are computed and signalled; the others are
        None.'''
        ans = self._check_nans(other, context)
        if ans is not None:
            return ans, ans
        sign = self.sign * other.sign
        if self.is_infinite():
            if other.is_infinite():
                ans = context.exception(InvalidOperation, 'divmod(Infinity, Infinity)')
                return ans, ans
            quotient = remainder = None
            if want_quotient:
                quotient = Num.infinity(self.radix, sign)
            if want_remainder:
                remainder = context.exception(InvalidOperation, 'Infinity % x')
            return quotient, remainder
        if not other.coefficient and other.is_finite():
            if not self.coefficient:
                ans = context.exception(DivisionUndefined, 'divmod(0, 0)')
                return ans, ans
            quotient = remainder = None
            if want_quotient:
                quotient = context.exception(DivisionByZero, 'x // 0', sign)
            if want_remainder:
                remainder = context.exception(InvalidOperation, 'x % 0')
            return quotient, remainder
        return None

    def _integer_division(self, other, context, floor, want_quotient=True,
                          want_remainder=True):
        other = self._convert_other(other)
        context = self._context(context)
        ans = self._division_specials(other, context, want_quotient, want_remainder)
        if ans is not None:
            return ans
        quotient, remainder = self._divide_integer(other, context, floor)
        return quotient, remainder._fix(context)

    def _divide_integer(self, other, context, floor):
        '''Integer quotient and remainder of finite self by non-zero other; the quotient
        truncated, or floored if floor is True.'''
        radix = self.radix
        sign = self.sign * other.sign
        if other.is_infinite():
            if floor and sign < 0 and self.coefficient:
                return Num(radix, -1, 1, 0), other
            return Num(radix, sign, 0, 0), self
        ideal_exp = min(self.exponent, other.exponent)

        expdiff = self.adjusted_exponent() - other.adjusted_exponent()
        if not self.coefficient or expdiff <= -2:
            # |self / other| < 1 / radix
            if floor and sign < 0 and self.coefficient:
                quotient = Num(radix, -1, 1, 0)
                return quotient, self.add(other, context.derive(precision=0))
            remainder = self._rescale(ideal_exp, context.rounding)
            if floor and not self.coefficient:
                remainder = remainder._replace(sign=other.sign)
            return Num(radix, sign, 0, 0), remainder

        if context.is_exact() or expdiff <= context.precision:
            lhs, rhs = self.coefficient, other.coefficient
            if self.exponent >= other.exponent:
                lhs *= radix ** (self.exponent - other.exponent)
            else:
                rhs *= radix ** (other.exponent - self.exponent)
            quotient, remainder = divmod(lhs, rhs)
            remainder_sign = self.sign
            if floor:
                if remainder and sign < 0:
                    quotient += 1
                    remainder = rhs - remainder
                remainder_sign = other.sign
            if context.is_exact() or quotient < radix ** context.precision:
                return (Num(radix, sign, quotient, 0),
                        Num(radix, remainder_sign, remainder, ideal_exp))

        ans = context.exception(DivisionImpossible, 'quotient too large for the precision')
        return ans, ans

    def divrem(self, other, context=None):
        '''Return the pair (divide_int, remainder).'''
        return self._integer_division(other, context, False)

    def divide_int(self, other, context=None):
        '''Return the integer part of self / other, truncated towards zero.'''
        return self._integer_division(other, context, False, want_remainder=False)[0]

    def remainder(self, other, context=None):
        '''Return self - other * divide_int(self, other).  The result has the sign of
        self.'''
        return self._integer_division(other, context, False, want_quotient=False)[1]

    def divmod(self, other, context=None):
        '''Return the pair (div, modulo), with the quotient floored as for Python numbers.'''
        return self._integer_division(other, context, True)

    def div(self, other, context=None):
        '''Return floor(self / other).'''
        return self._integer_division(other, context, True, want_remainder=False)[0]

    def modulo(self, other, context=None):
        '''Return self - other * div(self, other).  The result has the sign of other.'''
        return self._integer_division(other, context, True, want_quotient=False)[1]

    def remainder_near(self, other, context=None):
        '''Return self - other * n where n is the integer nearest self / other, ties to
        even.'''
        other = self._convert_other(other)
        context = self._context(context)
        radix = self.radix

        ans = self._check_nans(other, context)
        if ans is not None:
            return ans
        if self.is_infinite():
            return context.exception(InvalidOperation, 'remainder_near(Infinity, x)')
        if not other.coefficient and other.is_finite():
            if self.coefficient:
                return context.exception(InvalidOperation, 'remainder_near(x, 0)')
            return context.exception(DivisionUndefined, 'remainder_near(0, 0)')
        if other.is_infinite():
            return self._fix(context)

        ideal_exp = min(self.exponent, other.exponent)
        if not self.coefficient:
            return Num(radix, self.sign, 0, ideal_exp)._fix(context)

        expdiff = self.adjusted_exponent() - other.adjusted_exponent()
        if not context.is_exact() and expdiff >= context.precision + 1:
            # |self / other| > radix**precision
            return context.exception(DivisionImpossible)
        if expdiff <= -2:
            # |self / other| < 1 / radix
            return self._rescale(ideal_exp, context.rounding)._fix(context)

        lhs, rhs = self.coefficient, other.coefficient
        if self.exponent >= other.exponent:
            lhs *= radix ** (self.exponent - other.exponent)
        else:
            rhs *= radix ** (other.exponent - self.exponent)
        quotient, remainder = divmod(lhs, rhs)
        # Ensure abs(remainder) <= abs(other) / 2
        if 2 * remainder + (quotient & 1) > rhs:
            remainder -= rhs
            quotient += 1
        if not context.is_exact() and quotient >= radix ** context.precision:
            return context.exception(DivisionImpossible)

        sign = self.sign
        if remainder < 0:
            sign = -sign
            remainder = -remainder
        return Num(radix, sign, remainder, ideal_exp)._fix(context)

    def fma(self, other, third, context=None):
        '''Return self * other + third with a single rounding.'''
        other = self._convert_other(other)
        third = self._convert_other(third)
        context = self._context(context)
        radix = self.radix

        if self.is_special() or other.is_special():
            if self.is_snan():
                return context.exception(InvalidOperation, 'sNaN', self)
            if other.is_snan():
                return context.exception(InvalidOperation, 'sNaN', other)
            if self.is_nan():
                product = self
            elif other.is_nan():
                product = other
            elif self.is_infinite():
                if other.is_zero():
                    return context.exception(InvalidOperation, 'Infinity * 0 in fma')
                product = Num.infinity(radix, self.sign * other.sign)
            else:
                if self.is_zero():
                    return context.exception(InvalidOperation, '0 * Infinity in fma')
                product = Num.infinity(radix, self.sign * other.sign)
        else:
            product = Num(radix, self.sign * other.sign, self.coefficient * other.coefficient,
                          self.exponent + other.exponent)
        return product.add(third, context)

    def sqrt(self, context=None):
        '''Return the correctly rounded square root.  Exact roots take the ideal exponent,
        half that of the operand rounded down.'''
        context = self._context(context)
        radix = self.radix

        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            if self.sign > 0:
                return self
        if self.is_zero():
            return Num(radix, self.sign, 0, self.exponent >> 1)._fix(context)
        if self.sign < 0:
            return context.exception(InvalidOperation, 'sqrt(-x), x > 0')

        # Write the operand as c * radix**(2e) with c having l pairs of digits
        e = self.exponent >> 1
        digits = self.number_of_digits()
        if self.exponent & 1:
            c = self.coefficient * radix
            l = (digits >> 1) + 1
        else:
            c = self.coefficient
            l = (digits + 1) >> 1

        # A root of precision + 1 digits; in an exact context just those of an exact root
        precision = l if context.is_exact() else context.precision + 1
        shift = precision - l
        whole, scale = c, 1
        if shift >= 0:
            c *= radix ** (2 * shift)
            whole = c
            exact = True
        else:
            scale = radix ** (-2 * shift)
            c, remainder = divmod(c, scale)
            exact = not remainder
        e -= shift

        # Newton's method from above
        n = radix ** precision
        while True:
            q = c // n
            if n <= q:
                break
            n = (n + q) >> 1
        exact = exact and n * n == c

        if exact:
            # Restore the ideal exponent
            if shift >= 0:
                n //= radix ** shift
            else:
                n *= radix ** -shift
            e += shift
        else:
            if context.is_exact():
                return context.exception(Inexact, 'inexact square root')
            # Rounding needs only the side of half a unit the tail lies
            lhs, rhs = 4 * whole, (2 * n + 1) ** 2 * scale
            tail = (1, 4) if lhs < rhs else (1, 2) if lhs == rhs else (3, 4)
            return Num(radix, 1, n, e)._fix(context, tail)

        return Num(radix, 1, n, e)._fix(context)

    def plus(self, context=None):
        '''Return the number rounded to the context.  A zero is positive unless rounding
        to floor.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
        if self.is_zero() and context.rounding != ROUND_FLOOR:
            return self.copy_abs()._fix(context)
        return self._fix(context)

    def minus(self, context=None):
        '''Return the negated number rounded to the context.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
        if self.is_zero() and context.rounding != ROUND_FLOOR:
            return self.copy_abs()._fix(context)
        return self.copy_negate()._fix(context)

    def abs(self, context=None):
        '''Return the absolute value rounded to the context.'''
        if self.sign < 0 and not self.is_nan():
            return self.minus(context)
        return self.plus(context)

    def compare(self, other, context=None):
        '''Return -1, 0 or 1 as a Num, or a NaN if either operand is a NaN.'''
        other = self._convert_other(other)
        context = self._context(context)
        if self.is_nan() or other.is_nan():
            return self._check_nans(other, context)
        return Num.from_int(self._cmp(other), self.radix)

    def reduce(self, context=None):
        '''Round to the context and strip trailing zeroes as far as the exponent limit
        allows.  Zeroes become 0 with the sign preserved.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
        ans = self._fix(context)
        if ans.is_infinite():
            return ans
        if not ans.coefficient:
            return Num(self.radix, ans.sign, 0, 0)
        exp_max = context.etop() if context.clamp else context.emax
        limit = None if context.is_exact() else exp_max - ans.exponent
        coefficient, zeros = strip_zeros(ans.coefficient, self.radix, limit)
        return Num(self.radix, ans.sign, coefficient, ans.exponent + zeros)

    def normalize(self, context=None):
        '''Round to the context and pad the coefficient to the full precision, or for
        subnormals give it the smallest exponent.'''
        context = self._context(context)
        if self.is_special() or not self.coefficient or context.is_exact():
            return self
        ans = self._fix(context)
        if ans.is_special():
            return ans
        radix, coefficient, exp = self.radix, ans.coefficient, ans.exponent
        if ans.is_subnormal(context):
            context.exception(Subnormal)
            if exp > context.etiny():
                coefficient *= radix ** (exp - context.etiny())
                exp = context.etiny()
        else:
            pad = context.precision - ans.number_of_digits()
            if pad > 0:
                coefficient *= radix ** pad
                exp -= pad
        return Num(radix, ans.sign, coefficient, exp)

    def logb(self, context=None):
        '''Return the adjusted exponent as a number.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.is_infinite():
            return Num.infinity(self.radix)
        if not self.coefficient:
            return context.exception(DivisionByZero, 'logb(0)', -1)
        return Num.from_int(self.adjusted_exponent(), self.radix)._fix(context)

    def scaleb(self, other, context=None):
        '''Return the number with other added to its exponent.'''
        other = self._convert_other(other)
        context = self._context(context)
        ans = self._check_nans(other, context)
        if ans is not None:
            return ans
        if other.is_infinite() or not other.is_integral():
            return context.exception(InvalidOperation, 'scaleb requires an integer')
        n = int(other)
        if not context.is_exact():
            limit = 2 * (context.emax + context.precision)
            if not -limit <= n <= limit:
                return context.exception(InvalidOperation, 'scaleb out of range')
        if self.is_infinite():
            return self
        return Num(self.radix, self.sign, self.coefficient, self.exponent + n)._fix(context)

    def next_minus(self, context=None):
        '''Return the largest representable number smaller than self.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            if self.sign < 0:
                return self
            if context.is_exact():
                return context.exception(InvalidOperation, 'next_minus in an exact context')
            return context.maximum_finite(1)
        if context.is_exact():
            return context.exception(InvalidOperation, 'next_minus in an exact context')

        scratch = context.derive(rounding=ROUND_FLOOR)
        scratch.ignore_all_flags()
        ans = self._fix(scratch)
        if ans == self:
            ans = self.subtract(Num(self.radix, 1, 1, scratch.etiny() - 1), scratch)
        return ans

    def next_plus(self, context=None):
        '''Return the smallest representable number larger than self.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            if self.sign > 0:
                return self
            if context.is_exact():
                return context.exception(InvalidOperation, 'next_plus in an exact context')
            return context.maximum_finite(-1)
        if context.is_exact():
            return context.exception(InvalidOperation, 'next_plus in an exact context')

        scratch = context.derive(rounding=ROUND_CEILING)
        scratch.ignore_all_flags()
        ans = self._fix(scratch)
        if ans == self:
            ans = self.add(Num(self.radix, 1, 1, scratch.etiny() - 1), scratch)
        return ans

    def next_toward(self, other, context=None):
        '''Return the number adjacent to self in the direction of other.'''
        other = self._convert_other(other)
        context = self._context(context)
        ans = self._check_nans(other, context)
        if ans is not None:
            return ans
        if context.is_exact():
            return context.exception(InvalidOperation, 'next_toward in an exact context')

        comparison = self._cmp(other)
        if comparison == 0:
            return self.copy_sign(other)
        if comparison < 0:
            ans = self.next_plus(context)
        else:
            ans = self.next_minus(context)

        if ans.is_infinite():
            context.exception(Overflow, 'infinite result from next_toward', ans.sign)
            context.exception(Inexact)
            context.exception(Rounded)
        elif ans.adjusted_exponent() < context.emin:
            context.exception(Underflow)
            context.exception(Subnormal)
            context.exception(Inexact)
            context.exception(Rounded)
            if not ans.coefficient:
                context.exception(Clamped)
        return ans

    def _watched_rescale(self, exponent, context):
        if not context.is_exact() and exponent < context.etiny():
            return context.exception(InvalidOperation, 'target exponent below etiny')
        if exponent > context.emax:
            return context.exception(InvalidOperation, 'target exponent above emax')
        if not self.coefficient:
            return Num(self.radix, self.sign, 0, exponent)._fix(context)

        if self.adjusted_exponent() > context.emax:
            return context.exception(InvalidOperation, 'result exponent too large')
        if (not context.is_exact()
                and self.adjusted_exponent() - exponent + 1 > context.precision):
            return context.exception(InvalidOperation, 'result has too many digits')

        ans = self._rescale(exponent, context.rounding)
        if ans.adjusted_exponent() > context.emax:
            return context.exception(InvalidOperation, 'result exponent too large')
        if not context.is_exact() and ans.number_of_digits() > context.precision:
            return context.exception(InvalidOperation, 'result has too many digits')
        if ans.exponent > self.exponent:
            context.exception(Rounded)
            if ans != self:
                context.exception(Inexact)
        if ans.coefficient and ans.adjusted_exponent() < context.emin:
            context.exception(Subnormal)
        return ans._fix(context)

    def rescale(self, exponent, context=None):
        '''Return the number rounded to the given integer exponent.'''
        context = self._context(context)
        if isinstance(exponent, Num):
            exponent = self._convert_other(exponent)
            if self.is_special() or exponent.is_special():
                ans = self._check_nans(exponent, context)
                if ans is not None:
                    return ans
                if self.is_infinite() and exponent.is_infinite():
                    return self
                return context.exception(InvalidOperation, 'rescale with one Infinity')
            if not exponent.is_integral():
                return context.exception(InvalidOperation, 'rescale exponent not integral')
            exponent = int(exponent)
        elif self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            return context.exception(InvalidOperation, 'rescale of Infinity')
        return self._watched_rescale(exponent, context)

    def quantize(self, other, context=None):
        '''Return the number rounded to the exponent of other.'''
        other = self._convert_other(other)
        context = self._context(context)
        if self.is_special() or other.is_special():
            ans = self._check_nans(other, context)
            if ans is not None:
                return ans
            if self.is_infinite() and other.is_infinite():
                return self
            return context.exception(InvalidOperation, 'quantize with one Infinity')
        return self._watched_rescale(other.exponent, context)

    def to_integral_exact(self, context=None):
        '''Round to an integer, signalling Rounded and Inexact as appropriate.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            return self
        if self.exponent >= 0:
            return self
        if not self.coefficient:
            return Num(self.radix, self.sign, 0, 0)
        context.exception(Rounded)
        ans = self._rescale(0, context.rounding)
        if ans != self:
            context.exception(Inexact)
        return ans

    def to_integral_value(self, context=None):
        '''Round to an integer without signalling Rounded or Inexact.'''
        context = self._context(context)
        if self.is_special():
            ans = self._check_nans(context=context)
            if ans is not None:
                return ans
            return self
        if self.exponent >= 0:
            return self
        return self._rescale(0, context.rounding)

    def round(self, places=None, *, precision=None, rounding=ROUND_HALF_UP):
        '''Round to a number of places after the point (before it if negative), or to a
        number of significant digits.  With neither, return the nearest int.  No context
        is involved.'''
        as_int = places is None and precision is None
        if self.is_special():
            if as_int:
                return int(self)
            return self
        if precision is not None:
            digits = precision
        elif places is not None:
            digits = self.adjusted_exponent() + 1 + places
        else:
            digits = self.adjusted_exponent() + 1
        drop = self.number_of_digits() - digits
        coefficient, _ = _drop_digits(self.coefficient, drop, self.number_of_digits(),
                                      self.radix, rounding, self.sign)
        ans = Num(self.radix, self.sign, coefficient, self.exponent + drop)
        return int(ans) if as_int else ans

    def ceil(self, places=None, *, precision=None):
        return self.round(places, precision=precision, rounding=ROUND_CEILING)

    def floor(self, places=None, *, precision=None):
        return self.round(places, precision=precision, rounding=ROUND_FLOOR)

    def truncate(self, places=None, *, precision=None):
        return self.round(places, precision=precision, rounding=ROUND_DOWN)

    def integer_part(self):
        '''The integral part as a number, truncated towards zero.'''
        if self.is_special():
            return self
        return self.truncate(0)

    def fraction_part(self, context=None):
        '''self minus its integral part.'''
        if self.is_special():
            return self
        return self.subtract(self.integer_part(), context)

    def ulp(self, context=None, mode='low'):
        '''Return the unit in the last place of the number in the context.

        Powers of the radix lie between two spacings of representable numbers; the low
        mode gives them the smaller.'''
        context = self._context(context)
        if context.is_exact():
            return context.exception(InvalidOperation, 'ulp in an exact context')
        if self.is_nan():
            return self
        radix = self.radix
        if self.is_infinite():
            return Num(radix, 1, 1, context.etop())
        if not self.coefficient or self.adjusted_exponent() <= context.emin:
            return context.minimum_nonzero()
        normal = self.normalize(context)
        exp = normal.exponent
        if mode == 'low' and normal.coefficient == radix ** (context.precision - 1):
            exp -= 1
        return Num(radix, 1, 1, exp)

    ##
    ## Transcendental functions
    ##

    def exp(self, context=None):
        '''Return e**self, correctly rounded.'''
        context = self._context(context)
        radix = self.radix

        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.is_infinite():
            return Num.zero(radix) if self.sign < 0 else self
        if not self.coefficient:
            return Num(radix, 1, 1, 0)
        if context.is_exact():
            return context.exception(Inexact, 'exp of a non-zero number')

        p = context.precision
        adj = self.adjusted_exponent()
        # ln(radix) < ceil(ln(radix)) so these bounds are conservative
        ln_radix = ceil(log(radix))

        if self.sign > 0 and adj > number_of_digits((context.emax + 1) * ln_radix, radix):
            # Overflow
            ans = Num(radix, 1, 1, context.emax + 1)
        elif (self.sign < 0
              and adj > number_of_digits((1 - context.etiny()) * ln_radix, radix)):
            # Underflow to zero
            ans = Num(radix, 1, 1, context.etiny() - 2)
        elif self.sign > 0 and adj < -p - 1:
            # exp(x) is 1 plus a little
            ans = Num(radix, 1, radix ** (p + 1) + 1, -p - 1)
        elif self.sign < 0 and adj < -p - 1:
            # exp(x) is 1 minus a little
            ans = Num(radix, 1, radix ** (p + 2) - 1, -p - 2)
        else:
            c, e = self.coefficient * self.sign, self.exponent
            extra = 3
            while True:
                coefficient, exp = dexp(c, e, p + extra, radix)
                if is_unambiguous(coefficient, p, radix):
                    break
                logger.debug('exp: %d extra digits are ambiguous, retrying', extra)
                extra += 3
            ans = Num(radix, 1, coefficient, exp)

        return ans._fix(context)

    def ln(self, context=None):
        '''Return the natural logarithm, correctly rounded.'''
        context = self._context(context)
        radix = self.radix

        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if not self.coefficient and self.is_finite():
            return Num.infinity(radix, -1)
        if self.is_infinite() and self.sign > 0:
            return self
        if self._is_one():
            return Num.zero(radix)
        if self.sign < 0:
            return context.exception(InvalidOperation, 'ln of a negative value')
        if context.is_exact():
            return context.exception(Inexact, 'ln of a number other than 1')

        c, e = self.coefficient, self.exponent
        p = context.precision
        places = p - ln_exp_bound(c, e, radix) + 2
        while True:
            coefficient = dlog(c, e, places, radix)
            if is_unambiguous(coefficient, p, radix):
                break
            logger.debug('ln: %d places are ambiguous, retrying', places)
            places += 3
        ans = Num(radix, -1 if coefficient < 0 else 1, abs(coefficient), -places)
        return ans._fix(context)

    def log(self, base=None, context=None):
        '''Return the logarithm to the integer base, or the natural logarithm if base is
        None, correctly rounded.  Rational logarithms are computed exactly.'''
        if base is None:
            return self.ln(context)
        if isinstance(base, Num):
            if not base.is_integral():
                raise ValueError('the base of a logarithm must be an integer')
            base = int(base)
        if not isinstance(base, int):
            raise TypeError('the base of a logarithm must be an integer')
        if base < 2:
            raise ValueError(f'invalid logarithm base {base}')

        context = self._context(context)
        radix = self.radix
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if not self.coefficient and self.is_finite():
            return Num.infinity(radix, -1)
        if self.is_infinite() and self.sign > 0:
            return self
        if self.sign < 0:
            return context.exception(InvalidOperation, 'log of a negative value')

        c, e = self.coefficient, self.exponent
        exact = exact_log(c, e, radix, base)
        if exact is not None:
            return Num.from_fraction(exact, context)
        if context.is_exact():
            return context.exception(Inexact, 'irrational logarithm')

        p = context.precision
        places = p - log_base_exp_bound(c, e, radix, base) + 2
        while True:
            coefficient = dlog_base(c, e, places, radix, base)
            if is_unambiguous(coefficient, p, radix):
                break
            logger.debug('log%d: %d places are ambiguous, retrying', base, places)
            places += 3
        ans = Num(radix, -1 if coefficient < 0 else 1, abs(coefficient), -places)
        return ans._fix(context)

    def log10(self, context=None):
        return self.log(10, context)

    def log2(self, context=None):
        return self.log(2, context)

    def _power_modulo(self, other, modulo, context):
        '''Three-argument pow() for integral operands.'''
        modulo = self._convert_other(modulo)
        for value in (self, other, modulo):
            if value.is_snan():
                return context.exception(InvalidOperation, 'sNaN', value)
        for value in (self, other, modulo):
            if value.is_nan():
                return value._fix_nan(context)

        if not (self.is_integral() and other.is_integral() and modulo.is_integral()):
            return context.exception(InvalidOperation, 'pow() with a modulus requires '
                                     'integral arguments')
        if other.sign < 0 and other.coefficient:
            return context.exception(InvalidOperation, 'pow() with a modulus requires a '
                                     'non-negative exponent')
        if not modulo.coefficient:
            return context.exception(InvalidOperation, 'pow() modulus cannot be zero')
        if not context.is_exact() and modulo.adjusted_exponent() >= context.precision:
            return context.exception(InvalidOperation, 'pow() modulus has more digits than '
                                     'the precision')
        if not other.coefficient and not self.coefficient:
            return context.exception(InvalidOperation, '0 ** 0 is undefined')

        radix = self.radix
        sign = 1 if other.is_even() else self.sign
        modulus = abs(int(modulo))
        base = self.to_integral_value(context)
        exponent = other.to_integral_value(context)

        value = base.coefficient % modulus * pow(radix, base.exponent, modulus) % modulus
        # A digit at a time: value**(radix**exponent.exponent)
        for _ in range(exponent.exponent):
            value = pow(value, radix, modulus)
        value = pow(value, exponent.coefficient, modulus)
        return Num(radix, sign, value, 0)

    def power(self, other, modulo=None, context=None):
        '''Return self**other, correctly rounded.  Exact results are found when they exist.
        With modulo, return (self**other) % modulo for integral operands.'''
        other = self._convert_other(other)
        context = self._context(context)
        if modulo is not None:
            return self._power_modulo(other, modulo, context)
        radix = self.radix

        ans = self._check_nans(other, context)
        if ans is not None:
            return ans

        # 0**0 is undefined, x**0 = 1 otherwise
        if other.is_zero():
            if self.is_zero():
                return context.exception(InvalidOperation, '0 ** 0')
            return Num(radix, 1, 1, 0)

        # Negative only if self is negative and other an odd integer
        result_sign = 1
        if self.sign < 0:
            if other.is_integral():
                if other.is_odd():
                    result_sign = -1
            elif self.coefficient or self.is_infinite():
                return context.exception(InvalidOperation, 'negative number to a '
                                         'non-integral power')
            self = self.copy_negate()

        if self.is_zero():
            if other.sign > 0:
                return Num(radix, result_sign, 0, 0)
            return Num.infinity(radix, result_sign)

        if self.is_infinite():
            if other.sign > 0:
                return Num.infinity(radix, result_sign)
            return Num(radix, result_sign, 0, 0)

        if self._is_one():
            # The exponent and flags depend on the exponent of self and on other
            if context.is_exact():
                if (other.is_integral() and other.sign > 0
                        and other.adjusted_exponent() < 6):
                    exp = self.exponent * int(other)
                else:
                    exp = 0
            elif other.is_integral():
                if other.sign < 0:
                    multiplier = 0
                elif other._cmp(Num.from_int(context.precision, radix)) > 0:
                    multiplier = context.precision
                else:
                    multiplier = int(other)
                exp = self.exponent * multiplier
                if exp < 1 - context.precision:
                    exp = 1 - context.precision
                    context.exception(Rounded)
            else:
                context.exception(Inexact)
                context.exception(Rounded)
                exp = 1 - context.precision
            return Num(radix, result_sign, radix ** -exp, exp)

        self_adj = self.adjusted_exponent()

        # x**Inf is Inf if x > 1 and 0 if x < 1; x**-Inf the other way around
        if other.is_infinite():
            if (other.sign > 0) == (self_adj < 0):
                return Num(radix, result_sign, 0, 0)
            return Num.infinity(radix, result_sign)

        ans = None
        exact = False
        xc, xe = self.coefficient, self.exponent

        if not context.is_exact():
            # Catch extreme overflow and underflow
            bound = log_radix_exp_bound(xc, xe, radix) + other.adjusted_exponent()
            if (self_adj >= 0) == (other.sign > 0):
                if bound >= number_of_digits(context.emax, radix):
                    ans = Num(radix, result_sign, 1, context.emax + 1)
            else:
                if bound >= number_of_digits(-context.etiny(), radix):
                    ans = Num(radix, result_sign, 1, context.etiny() - 2)

        if ans is None:
            if context.is_exact():
                if other.adjusted_exponent() < 9:
                    magnitude = ceil(abs(Fraction(*other.as_integer_ratio())))
                    p = xc.bit_length() * magnitude + 1
                else:
                    p = number_of_digits(xc, radix) + 1
            else:
                p = context.precision + 1
            ideal_exponent = None
            if (other.is_integral() and other.sign > 0
                    and (context.is_exact() or other.adjusted_exponent() < 9)):
                ideal_exponent = xe * int(other)
            result = exact_power(xc, xe, other.coefficient, other.exponent, other.sign < 0,
                                 p, radix, ideal_exponent)
            if result is not None:
                ans = Num(radix, result_sign, *result)
                exact = True
                if context.is_exact():
                    return ans
            elif context.is_exact():
                return context.exception(Inexact, 'inexact power')

        if ans is None:
            # A rational x**y can lie exactly on a rounding boundary in an odd radix, so
            # is rounded once from its exact value
            max_bits = 4 * (context.precision + 2) * radix.bit_length()
            ratio = rational_power(xc, xe, other.coefficient, other.exponent, other.sign < 0,
                                   radix, max_bits)
            if ratio is not None:
                numerator, denominator, exp = ratio
                k = radix_exponent(denominator, radix)
                if k is None:
                    return Num(radix, result_sign, numerator, exp).divide(
                        Num(radix, 1, denominator, 0), context)
                ans = Num(radix, result_sign, numerator * radix ** k // denominator, exp - k)
                exact = True

        if ans is None:
            # x**y = exp(y * ln(x)), adding precision until it rounds unambiguously
            p = context.precision
            yc = other.coefficient * other.sign
            extra = 3
            while True:
                coefficient, exp = dpower(xc, xe, yc, other.exponent, p + extra, radix)
                if is_unambiguous(coefficient, p, radix):
                    break
                logger.debug('power: %d extra digits are ambiguous, retrying', extra)
                extra += 3
            ans = Num(radix, result_sign, coefficient, exp)

        if exact and not other.is_integral():
            # An exact result of a non-integral power is still Inexact and Rounded.  Round
            # in a scratch context so the conditions are signalled in the usual order.
            digits = ans.number_of_digits()
            if digits <= context.precision:
                pad = context.precision + 1 - digits
                ans = Num(radix, ans.sign, ans.coefficient * radix ** pad, ans.exponent - pad)
            scratch = context.derive(flags=0, traps=0)
            ans = ans._fix(scratch)
            scratch.exception(Inexact)
            if scratch.flags & Flags.SUBNORMAL:
                scratch.exception(Underflow)
            if scratch.flags & Flags.OVERFLOW:
                context.exception(Overflow, 'above emax', ans.sign)
            for kind in (Underflow, Subnormal, Inexact, Rounded, Clamped):
                if scratch.flags & kind.flag_to_raise:
                    context.exception(kind)
            return ans

        return ans._fix(context)

    ##
    ## Mathematical functions.  Angles are in radians.
    ##

    def _tiny_odd(self, context, above):
        '''The result of an odd function x + O(x**3) for an x so small that the cubic term
        cannot move it across a rounding boundary, or None.  above says whether the
        function's magnitude exceeds |x|.'''
        p = context.precision
        adj = self.adjusted_exponent()
        if 3 * adj + 4 > min(self.exponent, adj - p + 1):
            return None
        coefficient = self.coefficient * self.radix ** (p + 2) + (1 if above else -1)
        return Num(self.radix, self.sign, coefficient, self.exponent - p - 2)._fix(context)

    def _near_one(self, context, above):
        '''The result of an even function 1 + O(x**2) for a small enough x, or None.'''
        p = context.precision
        if 2 * self.adjusted_exponent() + 3 > -p:
            return None
        radix = self.radix
        if above:
            return Num(radix, 1, radix ** (p + 1) + 1, -p - 1)._fix(context)
        return Num(radix, 1, radix ** (p + 2) - 1, -p - 2)._fix(context)

    def _odd_places(self, context):
        # Enough places to see p digits of a result about as big as self
        return context.precision + 3 - min(0, self.adjusted_exponent())

    def _math_specials(self, context, name):
        '''NaN results, and the conditions of an exact context, shared by every function.
        Returns None to continue.'''
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if context.is_exact() and self.coefficient and not self.is_infinite():
            return context.exception(Inexact, f'{name} of a non-zero number')
        return None

    def _compare_one(self):
        return self.copy_abs()._cmp(Num(self.radix, 1, 1, 0))

    def sin(self, context=None):
        '''Return the sine, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'sin')
        if ans is not None:
            return ans
        if self.is_infinite():
            return context.exception(InvalidOperation, 'sin of an infinity')
        if not self.coefficient:
            return self._fix(context)
        ans = self._tiny_odd(context, False)
        if ans is None:
            c, e, radix, sign = self.coefficient, self.exponent, self.radix, self.sign

            def kernel(places):
                s, _, error = dsincos(c, e, places, radix)
                return sign * s, error, -places

            ans = _approximate(context, 'sin', kernel, self._odd_places(context))
        return ans

    def cos(self, context=None):
        '''Return the cosine, correctly rounded.'''
        context = self._context(context)
        radix = self.radix
        ans = self._math_specials(context, 'cos')
        if ans is not None:
            return ans
        if self.is_infinite():
            return context.exception(InvalidOperation, 'cos of an infinity')
        if not self.coefficient:
            return Num(radix, 1, 1, 0)
        ans = self._near_one(context, False)
        if ans is None:
            c, e = self.coefficient, self.exponent

            def kernel(places):
                _, co, error = dsincos(c, e, places, radix)
                return co, error, -places

            ans = _approximate(context, 'cos', kernel, context.precision + 3)
        return ans

    def tan(self, context=None):
        '''Return the tangent, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'tan')
        if ans is not None:
            return ans
        if self.is_infinite():
            return context.exception(InvalidOperation, 'tan of an infinity')
        if not self.coefficient:
            return self._fix(context)
        ans = self._tiny_odd(context, True)
        if ans is None:
            c, e, radix, sign = self.coefficient, self.exponent, self.radix, self.sign

            def kernel(places):
                value, error, exponent = dtan(c, e, places, radix)
                return sign * value, error, exponent

            ans = _approximate(context, 'tan', kernel, self._odd_places(context))
        return ans

    def asin(self, context=None):
        '''Return the arc sine, in [-pi/2, pi/2] and correctly rounded.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.is_infinite() or self._compare_one() > 0:
            return context.exception(InvalidOperation, 'asin of a value outside [-1, 1]')
        if not self.coefficient:
            return self._fix(context)
        if context.is_exact():
            return context.exception(Inexact, 'asin of a non-zero number')
        ans = self._tiny_odd(context, True)
        if ans is None:
            c, e, radix, sign = self.coefficient, self.exponent, self.radix, self.sign

            def kernel(places):
                value, error, exponent = dasin(c, e, places, radix)
                return sign * value, error, exponent

            ans = _approximate(context, 'asin', kernel, self._odd_places(context))
        return ans

    def acos(self, context=None):
        '''Return the arc cosine, in [0, pi] and correctly rounded.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.is_infinite() or self._compare_one() > 0:
            return context.exception(InvalidOperation, 'acos of a value outside [-1, 1]')
        if self._is_one():
            return Num.zero(self.radix)
        if context.is_exact():
            return context.exception(Inexact, 'acos of a number other than 1')
        c, e, radix, negative = self.coefficient, self.exponent, self.radix, self.sign < 0
        if negative and self._compare_one() == 0:
            return _approximate(context, 'acos', lambda places: dpi(1, 1, places, radix),
                                context.precision + 3)
        return _approximate(context, 'acos',
                            lambda places: dacos(c, e, places, radix, negative),
                            context.precision + 3)

    def atan(self, context=None):
        '''Return the arc tangent, in [-pi/2, pi/2] and correctly rounded.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        radix, sign = self.radix, self.sign
        if not self.coefficient and self.is_finite():
            return self._fix(context)
        if context.is_exact():
            return context.exception(Inexact, 'atan of a non-zero number')
        if self.is_infinite():
            kernel = self._pi_multiple(1, 2)
            return _approximate(context, 'atan', kernel, context.precision + 3)
        ans = self._tiny_odd(context, False)
        if ans is None:
            c, e = self.coefficient, self.exponent

            def kernel(places):
                value, error, exponent = datan(c, e, places, radix)
                return sign * value, error, exponent

            ans = _approximate(context, 'atan', kernel, self._odd_places(context))
        return ans

    def _pi_multiple(self, numerator, denominator):
        '''A kernel for pi * numerator / denominator with the sign of self.'''
        sign, radix = self.sign, self.radix

        def kernel(places):
            value, error, exponent = dpi(numerator, denominator, places, radix)
            return sign * value, error, exponent

        return kernel

    def atan2(self, other, context=None):
        '''Return the angle in [-pi, pi] from the positive x-axis of the point (other,
        self), correctly rounded.  As in IEEE 754 the signs of zeros and infinities choose
        the quadrant.'''
        context = self._context(context)
        other = self._convert_other(other)
        ans = self._check_nans(other, context)
        if ans is not None:
            return ans
        radix, sign = self.radix, self.sign

        fraction = None
        if self.is_infinite():
            if other.is_infinite():
                fraction = (1, 4) if other.sign > 0 else (3, 4)
            else:
                fraction = (1, 2)
        elif not self.coefficient or other.is_infinite():
            if other.sign > 0:
                return Num.zero(radix, sign)
            fraction = (1, 1)
        elif not other.coefficient:
            fraction = (1, 2)

        if context.is_exact():
            return context.exception(Inexact, 'atan2 of a non-zero number')
        p = context.precision
        if fraction is not None:
            return _approximate(context, 'atan2', self._pi_multiple(*fraction), p + 3)

        # |self / other| as an integer ratio
        shift = self.exponent - other.exponent
        numerator = self.coefficient * radix ** max(shift, 0)
        denominator = other.coefficient * radix ** max(-shift, 0)
        negative = other.sign < 0

        def kernel(places):
            value, error, exponent = datan_ratio(numerator, denominator, places, radix)
            if negative:
                pi, pi_error, _ = dpi(1, 1, places, radix)
                value, error = pi - value, error + pi_error
            return sign * value, error, exponent

        places = p + 3 + max(0, other.adjusted_exponent() - self.adjusted_exponent())
        return _approximate(context, 'atan2', kernel, places)

    def hypot(self, other, context=None):
        '''Return sqrt(self**2 + other**2), correctly rounded.'''
        context = self._context(context)
        other = self._convert_other(other)
        radix = self.radix
        if self.is_snan() or other.is_snan():
            return self._check_nans(other, context)
        if self.is_infinite() or other.is_infinite():
            return Num.infinity(radix)
        ans = self._check_nans(other, context)
        if ans is not None:
            return ans

        big, small = self, other
        if self.copy_abs()._cmp(other.copy_abs()) < 0:
            big, small = other, self
        if context.precision and small.coefficient and big.coefficient:
            adj = big.adjusted_exponent()
            low = min(big.exponent, adj - context.precision + 1)
            if 2 * small.adjusted_exponent() + 2 <= adj + low:
                # Too small to matter beyond being non-zero
                small = Num(radix, 1, 1, (adj + low) // 2 - 1)
        exp = min(big.exponent, small.exponent)
        total = (big.coefficient ** 2 * radix ** (2 * (big.exponent - exp))
                 + small.coefficient ** 2 * radix ** (2 * (small.exponent - exp)))
        return Num(radix, 1, total, 2 * exp).sqrt(context)

    def sinh(self, context=None):
        '''Return the hyperbolic sine, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'sinh')
        if ans is not None:
            return ans
        if self.is_infinite():
            return self
        if not self.coefficient:
            return self._fix(context)
        ans = self._tiny_odd(context, True)
        if ans is None:
            ans = self._hyperbolic(context, 'sinh', dsinh, self.sign)
        return ans

    def cosh(self, context=None):
        '''Return the hyperbolic cosine, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'cosh')
        if ans is not None:
            return ans
        if self.is_infinite():
            return Num.infinity(self.radix)
        if not self.coefficient:
            return Num(self.radix, 1, 1, 0)
        ans = self._near_one(context, True)
        if ans is None:
            ans = self._hyperbolic(context, 'cosh', dcosh, 1)
        return ans

    def _hyperbolic(self, context, name, kernel_function, sign):
        '''sinh or cosh through exp, whose digits kernel_function takes as places.'''
        radix = self.radix
        ln_radix = ceil(log(radix))
        if self.adjusted_exponent() > number_of_digits((context.emax + 1) * ln_radix, radix):
            # Overflows as exp does
            return Num(radix, sign, 1, context.emax + 1)._fix(context)
        c, e = self.coefficient, self.exponent

        def kernel(places):
            value, error, exponent = kernel_function(c, e, places, radix)
            return sign * value, error, exponent

        return _approximate(context, name, kernel, self._odd_places(context))

    def tanh(self, context=None):
        '''Return the hyperbolic tangent, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'tanh')
        if ans is not None:
            return ans
        radix, sign = self.radix, self.sign
        if self.is_infinite():
            return Num(radix, sign, 1, 0)
        if not self.coefficient:
            return self._fix(context)
        ans = self._tiny_odd(context, False)
        if ans is not None:
            return ans
        p = context.precision
        if self.copy_abs()._cmp(Num(radix, 1, (p + 3) * ceil(log(radix)), 0)) >= 0:
            # 1 minus a little
            return Num(radix, sign, radix ** (p + 2) - 1, -p - 2)._fix(context)
        c, e = self.coefficient, self.exponent

        def kernel(places):
            value, error, exponent = dtanh(c, e, places, radix)
            return sign * value, error, exponent

        return _approximate(context, 'tanh', kernel, self._odd_places(context))

    def asinh(self, context=None):
        '''Return the inverse hyperbolic sine, correctly rounded.'''
        context = self._context(context)
        ans = self._math_specials(context, 'asinh')
        if ans is not None:
            return ans
        if self.is_infinite():
            return self
        if not self.coefficient:
            return self._fix(context)
        ans = self._tiny_odd(context, False)
        if ans is None:
            c, e, radix, sign = self.coefficient, self.exponent, self.radix, self.sign

            def kernel(places):
                value, error, exponent = dasinh(c, e, places, radix)
                return sign * value, error, exponent

            ans = _approximate(context, 'asinh', kernel, self._odd_places(context))
        return ans

    def acosh(self, context=None):
        '''Return the inverse hyperbolic cosine, correctly rounded.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.sign < 0 or self._compare_one() < 0:
            return context.exception(InvalidOperation, 'acosh of a value below 1')
        if self.is_infinite():
            return self
        if self._is_one():
            return Num.zero(self.radix)
        if context.is_exact():
            return context.exception(Inexact, 'acosh of a number other than 1')
        c, e, radix = self.coefficient, self.exponent, self.radix
        return _approximate(context, 'acosh', lambda places: dacosh(c, e, places, radix),
                            context.precision + 3)

    def atanh(self, context=None):
        '''Return the inverse hyperbolic tangent, correctly rounded.  atanh(+-1) is an
        infinity with DivisionByZero.'''
        context = self._context(context)
        ans = self._check_nans(context=context)
        if ans is not None:
            return ans
        if self.is_infinite() or self._compare_one() > 0:
            return context.exception(InvalidOperation, 'atanh of a value outside [-1, 1]')
        if self._compare_one() == 0:
            return context.exception(DivisionByZero, 'atanh of a unit', self.sign)
        if not self.coefficient:
            return self._fix(context)
        if context.is_exact():
            return context.exception(Inexact, 'atanh of a non-zero number')
        ans = self._tiny_odd(context, True)
        if ans is None:
            c, e, radix, sign = self.coefficient, self.exponent, self.radix, self.sign

            def kernel(places):
                value, error, exponent = datanh(c, e, places, radix)
                return sign * value, error, exponent

            ans = _approximate(context, 'atanh', kernel, self._odd_places(context))
        return ans

    ##
    ## Python operators.  These use the current context of the radix.
    ##

    def __add__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.add(other)

    __radd__ = __add__

    def __sub__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.subtract(other)

    def __rsub__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.subtract(self)

    def __mul__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.multiply(other)

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.divide(other)

    def __rtruediv__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.divide(self)

    def __floordiv__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.div(other)

    def __rfloordiv__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.div(self)

    def __mod__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.modulo(other)

    def __rmod__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.modulo(self)

    def __divmod__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.divmod(other)

    def __rdivmod__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.divmod(self)

    def __pow__(self, other, modulo=None):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return self.power(other, modulo)

    def __rpow__(self, other):
        other = self._operand(other)
        if other is NotImplemented:
            return other
        return other.power(self)

    def __neg__(self):
        return self.minus()

    def __pos__(self):
        return self.plus()

    def __abs__(self):
        return self.abs()

    def __round__(self, n=None):
        if n is None:
            return self.round(rounding=ROUND_HALF_EVEN)
        return self.round(n, rounding=ROUND_HALF_EVEN)

    def __floor__(self):
        return self.floor()

    def __ceil__(self):
        return self.ceil()

    def __trunc__(self):
        return self.truncate()

    ##
    ## Comparisons and hashing
    ##

    def _comparand(self, other):
        if isinstance(other, Num):
            return other if other.radix == self.radix else NotImplemented
        if isinstance(other, int):
            return Num.from_int(other, self.radix)
        return NotImplemented

    def __eq__(self, other):
        other = self._comparand(other)
        if other is NotImplemented:
            return other
        if self.is_nan() or other.is_nan():
            if self.is_snan() or other.is_snan():
                self._check_nans(other, get_context(self.radix))
            return False
        return self._cmp(other) == 0

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def _ordering(self, other):
        '''Return the comparison of self and other, None if either is a NaN, which signals
        InvalidOperation.'''
        if self.is_nan() or other.is_nan():
            get_context(self.radix).exception(InvalidOperation, 'ordering comparison with NaN')
            return None
        return self._cmp(other)

    def __lt__(self, other):
        other = self._comparand(other)
        if other is NotImplemented:
            return other
        result = self._ordering(other)
        return result is not None and result < 0

    def __le__(self, other):
        other = self._comparand(other)
        if other is NotImplemented:
            return other
        result = self._ordering(other)
        return result is not None and result <= 0

    def __gt__(self, other):
        other = self._comparand(other)
        if other is NotImplemented:
            return other
        result = self._ordering(other)
        return result is not None and result > 0

    def __ge__(self, other):
        other = self._comparand(other)
        if other is NotImplemented:
            return other
        result = self._ordering(other)
        return result is not None and result >= 0

    def __hash__(self):
        '''Equal numbers hash equal, and agree with the hashes of equal ints, Fractions and
        floats.'''
        if self.is_special():
            if self.is_snan():
                raise TypeError('cannot hash a signalling NaN')
            if self.is_nan():
                return object.__hash__(self)
            return sys.hash_info.inf if self.sign > 0 else -sys.hash_info.inf
        modulus = sys.hash_info.modulus
        if self.exponent >= 0:
            exp_hash = pow(self.radix, self.exponent, modulus)
        else:
            exp_hash = pow(pow(self.radix, -1, modulus), -self.exponent, modulus)
        value = self.coefficient * exp_hash % modulus
        if self.sign < 0:
            value = -value
        return -2 if value == -1 else value

    def __bool__(self):
        return self.is_special() or bool(self.coefficient)

    ##
    ## Conversions
    ##

    def __int__(self):
        '''Truncate towards zero.'''
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer')
        if self.is_infinite():
            raise OverflowError('cannot convert infinity to integer')
        if self.exponent >= 0:
            value = self.coefficient * self.radix ** self.exponent
        else:
            value = self.coefficient // self.radix ** -self.exponent
        return value * self.sign

    def __float__(self):
        if self.is_nan():
            return -float('nan') if self.sign < 0 else float('nan')
        if self.is_infinite():
            return float('inf') * self.sign
        if not self.coefficient:
            return 0.0 * self.sign
        # Avoid forming huge integers for values far outside the range of floats
        log2_radix = log(self.radix, 2)
        if self.adjusted_exponent() * log2_radix > 1100:
            return float('inf') * self.sign
        if (self.adjusted_exponent() + 1) * log2_radix < -1100:
            return 0.0 * self.sign
        numerator, denominator = self.as_integer_ratio()
        try:
            return numerator / denominator
        except OverflowError:
            return float('inf') * self.sign

    def to_string(self, eng=False, context=None):
        '''Convert to a string in scientific notation, or engineering notation if eng is
        True, in the number's own radix.'''
        context = self._context(context)
        text_format = TextFormat(eng=eng, capitals=context.capitals)
        if self.is_special():
            return text_format.format_non_finite(self.sign < 0, self.exponent,
                                                 self.coefficient)
        if self.radix > len(DIGIT_CHARS):
            raise ValueError(f'radix {self.radix} numbers have no digits to show')
        return text_format.format_digits(self.sign < 0,
                                         int_to_string(self.coefficient, self.radix),
                                         self.exponent, self.radix)

    def to_eng_string(self, context=None):
        return self.to_string(True, context)

    def __str__(self):
        return self.to_string()

    def format(self, base=None, rounding=None, all_digits=False, mode='general',
               text_format=None, context=None):
        '''Convert to a string of digits in base (by default the number's radix).

        In the number's own radix the coefficient digits are shown as they are.  Otherwise
        the shortest digits that read back as the number under rounding (by default the
        context's) are shown, or with all_digits every digit of the exact value; a value
        that has no finite expansion in base raises InfiniteLoopError.
        '''
        context = self._context(context)
        base = base or self.radix
        if not 2 <= base <= len(DIGIT_CHARS):
            raise ValueError(f'cannot format to base {base}')
        if text_format is None:
            text_format = TextFormat(mode=mode, capitals=context.capitals)
        negative = self.sign < 0
        if self.is_special():
            return text_format.format_non_finite(negative, self.exponent, self.coefficient)
        if base == self.radix:
            return text_format.format_digits(negative, int_to_string(self.coefficient, base),
                                             self.exponent, base)
        if not self.coefficient:
            return text_format.format_digits(negative, '0', 0, base)

        rounding = rounding or context.rounding
        if context.is_exact():
            # Truncated all-digits output is the exact value
            formatter = Formatter(self.radix, None, base)
            precision, all_digits, rounding = self.number_of_digits(), True, ROUND_DOWN
        else:
            formatter = Formatter(self.radix, context.etiny(), base)
            precision = context.precision
        # The spacing of neighbouring values is a unit of the last digit
        value = self if context.is_exact() else full_precision(self, context)
        result = formatter.format(value.coefficient, value.exponent, negative, rounding,
                                  precision, all_digits)
        k, digits = result.adjusted(rounding)
        return text_format.format_digits(negative, digits_to_string(digits), k - len(digits),
                                         base)


#
# Radix conversion
#

def convert_exact(x, dest_context):
    '''Return the value of x as a number of the radix of dest_context, rounded once under
    that context.'''
    radix = dest_context.radix
    if x.is_special():
        return Num(radix, x.sign, x.coefficient, x.exponent)._fix(dest_context)
    if not x.coefficient:
        return Num(radix, x.sign, 0, 0)
    if x.exponent >= 0:
        return Num(radix, x.sign, x.coefficient * x.radix ** x.exponent, 0)._fix(dest_context)
    numerator = Num(radix, x.sign, x.coefficient, 0)
    return numerator.divide(Num(radix, 1, x.radix ** -x.exponent, 0), dest_context)


def convert(x, dest_context, rounding=None, all_digits=False):
    '''Convert x to the radix of dest_context with the fewest digits that read back as x in
    its own (current) context under rounding, which defaults to that context's rounding.
    With all_digits, every digit of the exact value.  The result is not rounded to
    dest_context.'''
    radix = dest_context.radix
    if radix == x.radix:
        return x
    if x.is_special():
        return Num(radix, x.sign, x.coefficient, x.exponent)
    if not x.coefficient:
        return Num(radix, x.sign, 0, 0)
    source = get_context(x.radix)
    if source.is_exact():
        return convert_exact(x, dest_context)
    rounding = rounding or source.rounding
    formatter = Formatter(x.radix, source.etiny(), radix)
    value = full_precision(x, source)
    result = formatter.format(value.coefficient, value.exponent, x.sign < 0, rounding,
                              source.precision, all_digits)
    k, digits = result.adjusted(rounding)
    coefficient = 0
    for digit in digits:
        coefficient = coefficient * radix + digit
    return Num(radix, x.sign, coefficient, k - len(digits))


#
# Predefined contexts
#

DefaultContext = Context(10)
BasicContext = Context(10, precision=9, rounding=ROUND_HALF_UP,
                       traps=DEFAULT_TRAPS | Flags.CLAMPED | Flags.UNDERFLOW)
ExtendedContext = Context(10, precision=9, traps=0)
BinaryDefaultContext = Context(2, precision=53, emin=-1025, emax=1023)
BinaryExtendedContext = Context(2, precision=53, emin=-1025, emax=1023, traps=0)

IEEEHalfContext = Context(2, precision=11, emin=-14, emax=15, clamp=True)
IEEESingleContext = Context(2, precision=24, emin=-126, emax=127, clamp=True)
IEEEDoubleContext = Context(2, precision=53, emin=-1022, emax=1023, clamp=True)
IEEEQuadContext = Context(2, precision=113, emin=-16382, emax=16383, clamp=True)
IEEEExtendedContext = Context(2, precision=64, emin=-16382, emax=16383, clamp=True)

Decimal32Context = Context(10, precision=7, emin=-95, emax=96, clamp=True)
Decimal64Context = Context(10, precision=16, emin=-383, emax=384, clamp=True)
Decimal128Context = Context(10, precision=34, emin=-6143, emax=6144, clamp=True)


def default_context(radix=10):
    '''Return the default context for the radix.  Radices other than 10 and 2 get a modest
    context with precision 10 and exponents up to 100.'''
    if radix == 10:
        return DefaultContext
    if radix == 2:
        return BinaryDefaultContext
    return Context(radix, precision=10, elimit=100)


#
# The current context: one per thread and radix
#

tls = threading.local()


def get_context(radix=10):
    '''Return the current thread's context for the radix, starting from a copy of
    default_context(radix).'''
    try:
        contexts = tls.contexts
    except AttributeError:
        contexts = tls.contexts = {}
    try:
        return contexts[radix]
    except KeyError:
        context = contexts[radix] = default_context(radix).copy()
        return context


def set_context(context):
    '''Sets the current thread's context for context.radix to context (not a copy of it).'''
    get_context(context.radix)
    tls.contexts[context.radix] = context


class LocalContext:
    '''A context manager that will set the current context for the active thread to a copy of
    context on entry to the with-statement and restore the previous context on exit.  If
    no context is specified a copy of the current context of radix (default 10) is taken
    instead.  Any options are applied to the copy as for Context.derive().
    '''

    def __init__(self, context=None, radix=None, **options):
        self.saved_context = None
        self.context_to_set = context
        self.radix = radix
        self.options = options

    def __enter__(self):
        base = self.context_to_set or get_context(self.radix or 10)
        self.saved_context = get_context(base.radix)
        context = base.derive(**self.options) if self.options else base.copy()
        set_context(context)
        return context

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_context(self.saved_context)


local_context = LocalContext
