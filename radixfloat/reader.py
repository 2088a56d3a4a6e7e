#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

'''Correctly rounded conversion of digits in one radix to numbers of another.

These are Clinger's algorithms from "How to Read Floating Point Numbers Accurately".  A
value u / v, exact as a quotient of integers, is rounded to the precision of a context:

   M   scales u / v by powers of the output radix until the integer quotient has exactly
       the precision's digits, then rounds on the remainder.
   R   starts from a floating point approximation and corrects it a unit at a time by
       exact comparisons.  Falls back to M when no trustworthy approximation exists.
   A   performs one correctly rounded multiplication or division by a power of the input
       radix.

All three give the same number and signal the same conditions (A may also signal Rounded
for an exact result with trailing zeroes).
'''

import logging
import re
import sys
from math import ceil, ldexp, log, log2

import attr

from .intmath import number_of_digits, string_to_int
from .num import (
    Num, ConversionSyntax, Inexact, Rounded, Overflow, Underflow, Subnormal, Clamped,
    SPECIAL_INFINITY, SPECIAL_QNAN, SPECIAL_SNAN, full_precision,
)
from .rounding import ROUND_HALF_EVEN, ROUND_NEAREST, round_up

__all__ = ('Reader', 'ParsedLiteral', 'parse_literal', 'read_literal')

logger = logging.getLogger(__name__)

# Precision in bits beyond which a double is too coarse a starting point for algorithm R
FLOAT_SEED_BITS = 50
READ_ALGORITHMS = (None, 'M', 'R', 'A')


#
# Literal grammar
#

def _number_pattern(digit, marker):
    return re.compile(rf'''
        (?P<sign>[-+])?
        (?:
           (?P<int>{digit}+)(?:\.(?P<frac>{digit}*))?     # 1 or 1. or 1.5
          |\.(?P<onlyfrac>{digit}+)                       # .5
        )
        (?:{marker}(?P<exp>[-+]?\d+))?
        \Z''', re.VERBOSE | re.IGNORECASE | re.ASCII)


# Radices up to 10 take an E or @ exponent marker; larger radices have e as a digit
LOW_RADIX_LITERAL = _number_pattern('[0-9]', '[E@]')
HIGH_RADIX_LITERAL = _number_pattern('[0-9a-z]', '@')
SPECIAL_LITERAL = re.compile(r'(?P<sign>[-+])?(?:(?P<inf>Inf(?:inity)?)|(?P<signal>s)?NaN'
                             r'(?P<payload>\d*))\Z', re.IGNORECASE | re.ASCII)
HEX_LITERAL = re.compile(r'''
    (?P<sign>[-+])?0x
    (?:
       (?P<int>[0-9a-f]+)(?:\.(?P<frac>[0-9a-f]*))?
      |\.(?P<onlyfrac>[0-9a-f]+)
    )
    (?:p(?P<exp>[-+]?\d+))?
    \Z''', re.VERBOSE | re.IGNORECASE | re.ASCII)


@attr.s(slots=True, kw_only=True, cmp=False)
class ParsedLiteral:
    '''The parts of a number literal.'''

    # +1 or -1
    sign = attr.ib()
    # The radix of digits and exponent
    radix = attr.ib(default=10)
    # The significant digits with the radix point removed; None for specials
    digits = attr.ib(default=None)
    # The exponent of the last digit
    exponent = attr.ib(default=0)
    # None for finite numbers, otherwise the special exponent tag
    special = attr.ib(default=None)
    # The NaN payload digits as written, possibly empty
    payload = attr.ib(default='')

    def coefficient(self):
        return string_to_int(self.digits, self.radix)

    def significant_digits(self):
        '''The number of digits written, ignoring leading zeroes.  At least 1.'''
        return max(len(self.digits.lstrip('0')), 1)


def parse_literal(text, radix=10):
    '''Parse a number literal with digits in radix.  Returns a ParsedLiteral, or None if text
    is not a valid literal.

    Besides numbers such as '-1.25E+3', 'Inf', 'Infinity', 'NaN', 'sNaN' with optional
    decimal payload, and hexadecimal literals such as '0x1.8p-3' (radix 2) are accepted,
    in any case.  No whitespace is permitted.
    '''
    match = SPECIAL_LITERAL.match(text)
    if match:
        sign = -1 if match.group('sign') == '-' else 1
        if match.group('inf'):
            return ParsedLiteral(sign=sign, radix=radix, special=SPECIAL_INFINITY)
        special = SPECIAL_SNAN if match.group('signal') else SPECIAL_QNAN
        return ParsedLiteral(sign=sign, radix=radix, special=special,
                             payload=match.group('payload'))

    match = HEX_LITERAL.match(text)
    if match:
        fraction = match.group('frac') or match.group('onlyfrac') or ''
        digits = (match.group('int') or '') + fraction
        # Each hex digit is 4 bits
        exponent = int(match.group('exp') or 0) - 4 * len(fraction)
        return ParsedLiteral(sign=-1 if match.group('sign') == '-' else 1, radix=2,
                             digits=bin(int(digits, 16))[2:], exponent=exponent)

    pattern = LOW_RADIX_LITERAL if radix <= 10 else HIGH_RADIX_LITERAL
    match = pattern.match(text)
    if match is None:
        return None
    fraction = match.group('frac') or match.group('onlyfrac') or ''
    digits = (match.group('int') or '') + fraction
    try:
        string_to_int(digits, radix)
    except ValueError:
        return None
    return ParsedLiteral(sign=-1 if match.group('sign') == '-' else 1, radix=radix,
                         digits=digits, exponent=int(match.group('exp') or 0) - len(fraction))


#
# Reading
#

class Reader:
    '''Converts a value coefficient * input_radix**exponent to a correctly rounded number
    of a context.

    algorithm is 'M', 'R' or 'A', or None to choose: A when one radix is a power of the
    other, otherwise R.  Exact contexts always use A.
    '''

    def __init__(self, algorithm=None):
        if algorithm not in READ_ALGORITHMS:
            raise ValueError(f'unknown read algorithm {algorithm!r}')
        self.algorithm = algorithm

    def read(self, context, sign, coefficient, exponent, input_radix, rounding=None):
        '''Return the number sign * coefficient * input_radix**exponent rounded to context
        under rounding, which defaults to the context's.  ROUND_NEAREST means any
        round-to-nearest mode.  coefficient can be a digit string in input_radix.'''
        if isinstance(coefficient, str):
            coefficient = string_to_int(coefficient, input_radix)
        rounding = rounding or context.rounding
        if rounding == ROUND_NEAREST:
            rounding = context.rounding if context.round_to_nearest() else ROUND_HALF_EVEN
        radix = context.radix

        saved_rounding = context.rounding
        context.rounding = rounding
        try:
            if input_radix == radix:
                return Num(radix, sign, coefficient, exponent)._fix(context)
            if not coefficient:
                return Num(radix, sign, 0, 0)

            algorithm = self.algorithm
            if context.is_exact():
                algorithm = 'A'
            elif algorithm is None:
                algorithm = 'A' if commensurable(input_radix, radix) else 'R'

            if algorithm == 'A':
                return self._read_a(context, sign, coefficient, exponent, input_radix)
            # The value is u / v
            if exponent >= 0:
                u, v = coefficient * input_radix ** exponent, 1
            else:
                u, v = coefficient, input_radix ** -exponent
            if algorithm == 'R':
                return self._read_r(context, sign, u, v, coefficient, exponent, input_radix)
            return self._read_m(context, sign, u, v)
        finally:
            context.rounding = saved_rounding

    def _read_a(self, context, sign, coefficient, exponent, input_radix):
        radix = context.radix
        if exponent >= 0:
            ans = Num(radix, sign, coefficient * input_radix ** exponent, 0)._fix(context)
        else:
            ans = Num(radix, sign, coefficient, 0).divide(
                Num(radix, 1, input_radix ** -exponent, 0), context)
        if context.is_exact():
            return ans
        return full_precision(ans, context)

    def _read_m(self, context, sign, u, v):
        radix, n = context.radix, context.precision
        etiny, etop = context.etiny(), context.etop()
        low, high = radix ** (n - 1), radix ** n

        k = number_of_digits(u, radix) - number_of_digits(v, radix) - n + 1
        k = min(max(k, etiny), etop + 1)
        while True:
            if k >= 0:
                divisor = v * radix ** k
                q, rem = divmod(u, divisor)
            else:
                divisor = v
                q, rem = divmod(u * radix ** -k, v)
            if q >= high and k <= etop:
                k += 1
            elif q < low and k > etiny:
                k -= 1
            else:
                break
        return self._round(context, sign, q, k, rem, divisor)

    def _read_r(self, context, sign, u, v, coefficient, exponent, input_radix):
        radix, n = context.radix, context.precision
        etiny = context.etiny()
        low, high = radix ** (n - 1), radix ** n

        seed = self._seed(context, coefficient, exponent, input_radix)
        if seed is None:
            return self._read_m(context, sign, u, v)

        # m * radix**k is the candidate, with m of n digits unless k is etiny
        k = max(seed.adjusted_exponent() - n + 1, etiny)
        if seed.exponent >= k:
            m = seed.coefficient * radix ** (seed.exponent - k)
        else:
            m = seed.coefficient // radix ** (k - seed.exponent)

        while True:
            if k >= 0:
                x, y = u, v * radix ** k
            else:
                x, y = u * radix ** -k, v
            if x < m * y:
                logger.debug('read: correcting %d * %d**%d downwards', m, radix, k)
                m -= 1
                if m < low and k > etiny:
                    m, k = high - 1, k - 1
            elif x >= (m + 1) * y:
                logger.debug('read: correcting %d * %d**%d upwards', m, radix, k)
                m += 1
                if m == high:
                    m, k = low, k + 1
            else:
                break
        return self._round(context, sign, m, k, x - m * y, y)

    def _seed(self, context, coefficient, exponent, input_radix):
        '''Return a positive floating point approximation of the value as a number of the
        context, or None if there isn't a good enough one.'''
        if context.precision * log2(context.radix) > FLOAT_SEED_BITS:
            return None
        # Values outside the range of normal floats
        magnitude = (number_of_digits(coefficient, input_radix) + exponent) * log2(input_radix)
        if not -1000 < magnitude < 1000:
            return None
        try:
            if input_radix == 2:
                value = ldexp(float(coefficient), exponent)
            elif exponent >= 0:
                value = float(coefficient) * float(input_radix) ** exponent
            else:
                value = float(coefficient) / float(input_radix) ** -exponent
        except OverflowError:
            return None
        if not sys.float_info.min <= value <= sys.float_info.max:
            return None

        scratch = context.derive()
        scratch.ignore_all_flags()
        seed = Num.from_float(value, scratch)
        if not seed or seed.is_special():
            return None
        return seed

    def _round(self, context, sign, q, k, rem, divisor):
        '''Round the quotient q * radix**k, with the discarded part rem / divisor of a unit,
        and signal the conditions.'''
        radix, n = context.radix, context.precision
        etiny, etop = context.etiny(), context.etop()
        inexact = rem != 0
        subnormal = q < radix ** (n - 1)

        if round_up(context.rounding, sign, q, rem, divisor, radix):
            q += 1
            if q == radix ** n:
                q, k = radix ** (n - 1), k + 1

        if k > etop:
            context.exception(Inexact)
            context.exception(Rounded)
            return context.exception(Overflow, 'above emax', sign)

        if subnormal:
            context.exception(Subnormal)
        if inexact:
            context.exception(Rounded)
            context.exception(Inexact)
            if subnormal:
                context.exception(Underflow)
                if not q:
                    context.exception(Clamped)
        return Num(radix, sign, q, k)


def commensurable(a, b):
    '''Return True if one of the radices is an integral power of the other.'''
    if a < b:
        a, b = b, a
    while a % b == 0:
        a //= b
    return a == 1


def read_literal(text, context, mode='fixed', radix=10):
    '''Convert a number literal to a number of the context.

    In fixed mode the result is correctly rounded to the context.  In free mode it keeps
    the precision of the literal: exactly its digits when they are in the context's radix,
    otherwise the fewest digits in the context's radix that keep distinct literals
    distinct.  Invalid literals signal ConversionSyntax.
    '''
    if mode not in ('fixed', 'free'):
        raise ValueError(f'invalid read mode {mode!r}')
    parsed = parse_literal(text, radix)
    if parsed is None:
        return context.exception(ConversionSyntax, f'invalid literal {text!r}')

    out_radix = context.radix
    if parsed.special == SPECIAL_INFINITY:
        return Num.infinity(out_radix, parsed.sign)
    if parsed.special:
        payload = int(parsed.payload or 0)
        limit = context.maximum_nan_diagnostic_digits()
        if limit is not None and len(parsed.payload.lstrip('0')) > limit:
            return context.exception(ConversionSyntax, 'NaN payload too long')
        return Num(out_radix, parsed.sign, payload, parsed.special)

    coefficient = parsed.coefficient()
    if mode == 'free' and not context.is_exact():
        if parsed.radix == out_radix:
            return Num(out_radix, parsed.sign, coefficient, parsed.exponent)
        precision = ceil(parsed.significant_digits() * log(parsed.radix) / log(out_radix)) + 1
        scratch = context.derive(precision=precision)
        result = Reader().read(scratch, parsed.sign, coefficient, parsed.exponent,
                               parsed.radix)
        context.flags |= scratch.flags
        return result
    return Reader().read(context, parsed.sign, coefficient, parsed.exponent, parsed.radix)
