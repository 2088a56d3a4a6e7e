#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

'''Free-format conversion of floating point values to digits in another radix.

This is the Burger and Dybvig algorithm from "Printing Floating-Point Numbers Quickly and
Accurately".  A value v = f * b**e of precision p is treated as standing for every number
in its rounding range, the interval of reals that read back as v under a given rounding
mode.  Quotients of integers hold the magnitudes:

   r / s     is v
   m_m / s   is the distance from the lower end of the rounding range to v
   m_p / s   is the distance from v to the upper end of the rounding range

round_l and round_h say whether the lower and upper ends are themselves in the range.
'''

import logging
from math import ceil, log

import attr

from .intmath import DIGIT_CHARS, expansion_period
from .rounding import (
    ROUND_DOWN, ROUND_UP, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_HALF_DOWN, ROUND_05UP,
    simplified_rounding,
)

__all__ = ('Formatter', 'FormatResult', 'TextFormat', 'InfiniteLoopError', 'adjust_digits',
           'digits_to_string', 'DefaultTextFormat')

logger = logging.getLogger(__name__)


class InfiniteLoopError(RuntimeError):
    '''Generating all the digits of a value would never terminate.'''


def digits_to_string(digits):
    '''Return the digit values as a (lower case) string.'''
    return ''.join(DIGIT_CHARS[digit] for digit in digits)


def adjust_digits(k, digits, rounding, negative, round_up, radix):
    '''Round the truncated output of all-digits generation.

    round_up describes the discarded digits as returned by Formatter.format: None if they
    are all zero, 'lo' if below a tie, 'tie' or 'hi'.  Returns a (k, digits) pair; a carry
    out of the leading digit increments k.
    '''
    rounding = simplified_rounding(rounding, -1 if negative else 1)
    if not round_up or rounding == ROUND_DOWN:
        return k, digits

    if rounding == ROUND_05UP:
        increment = digits[-1] == 0 or digits[-1] == radix // 2
    elif rounding == ROUND_UP or round_up == 'hi':
        increment = True
    elif round_up == 'tie':
        increment = (rounding == ROUND_HALF_UP
                     or (rounding == ROUND_HALF_EVEN and digits[-1] % 2 == 1))
    else:
        increment = False

    if not increment:
        return k, digits

    digits = list(digits)
    pos = len(digits) - 1
    while pos >= 0:
        digits[pos] += 1
        if digits[pos] < radix:
            break
        digits[pos] = 0
        pos -= 1
    if pos < 0:
        digits.insert(0, 1)
        k += 1
    return k, digits


@attr.s(slots=True, kw_only=True, cmp=False)
class FormatResult:
    '''The digits of a formatted value, which is 0.d1d2d3... * radix**k.'''

    # The output radix
    radix = attr.ib()
    # True if the formatted value was negative
    negative = attr.ib()
    # The position of the radix point relative to the first digit
    k = attr.ib()
    # Digit values, most significant first
    digits = attr.ib()
    # All-digits output only.  None if the discarded digits are zero, otherwise 'lo',
    # 'tie' or 'hi' according as they are below, at or above half a unit of the last digit.
    round_up = attr.ib(default=None)
    # If not None, the index in digits of the first digit of a cycle that repeats forever
    repeat = attr.ib(default=None)

    def adjusted(self, rounding):
        '''Return (k, digits) rounded under rounding, without leading zeroes.'''
        k, digits = adjust_digits(self.k, self.digits, rounding, self.negative,
                                  self.round_up, self.radix)
        zeros = 0
        while zeros < len(digits) - 1 and digits[zeros] == 0:
            zeros += 1
        return k - zeros, digits[zeros:]

    def exponent(self):
        '''The exponent of the last digit.'''
        return self.k - len(self.digits)


class Formatter:
    '''Converts values of input_radix to digits of output_radix.

    input_min_e is the smallest exponent of the input values (the etiny of their
    context); below it the spacing of values stays constant.  If raise_on_repeat is
    False, all-digits generation that finds a repeating cycle stops and sets the repeat
    attribute of its result instead of raising InfiniteLoopError.
    '''

    def __init__(self, input_radix, input_min_e, output_radix, raise_on_repeat=True):
        self.input_radix = input_radix
        self.input_min_e = input_min_e
        self.output_radix = output_radix
        self.raise_on_repeat = raise_on_repeat

    def format(self, coefficient, exponent, negative, rounding, precision, all_digits=False):
        '''Generate the digits of coefficient * input_radix**exponent.

        rounding is the mode under which the digits will be read back; the digits are
        enough for a reader with that mode and precision to recover the value exactly.
        ROUND_NEAREST asks for digits good for any round-to-nearest reader.  If all_digits
        is True every significant digit is generated without rounding, and round_up of
        the result describes the discarded part.
        '''
        if coefficient <= 0:
            raise ValueError('only non-zero values can be formatted')
        b, B = self.input_radix, self.output_radix
        f, e = coefficient, exponent
        rounding = simplified_rounding(rounding, -1 if negative else 1)

        if rounding == ROUND_HALF_EVEN:
            round_l = round_h = (f % b) % 2 == 0
        elif rounding == ROUND_UP:
            # (v-, v]
            round_l, round_h = False, True
        elif rounding == ROUND_DOWN:
            # [v, v+)
            round_l, round_h = True, False
        elif rounding == ROUND_HALF_UP:
            round_l, round_h = True, False
        elif rounding == ROUND_HALF_DOWN:
            round_l, round_h = False, True
        else:
            # Any round-to-nearest reader; 05up readers are given the same digits
            round_l = round_h = False

        # The gap below a power of the radix is smaller, except at the bottom of the range
        boundary = f == b ** (precision - 1)
        if e >= 0:
            be = b ** e
            if not boundary:
                r, s, m_p, m_m = f * be * 2, 2, be, be
            else:
                r, s, m_p, m_m = f * be * b * 2, b * 2, be * b, be
        else:
            if e == self.input_min_e or not boundary:
                r, s, m_p, m_m = f * 2, b ** -e * 2, 1, 1
            else:
                r, s, m_p, m_m = f * b * 2, b ** (1 - e) * 2, b, 1

        # Directed readers accept a whole gap on one side
        if rounding == ROUND_UP:
            m_m, m_p = m_m * 2, 0
        elif rounding == ROUND_DOWN:
            m_m, m_p = 0, m_p * 2

        # Scale so that the first digit follows the radix point.  k is the least integer
        # with (r + m_p) / s <= B**k (< if round_h).
        k = ceil((log(f) + e * log(b)) / log(B) - 1e-10)
        if k >= 0:
            s *= B ** k
        else:
            scale = B ** -k
            r *= scale
            m_p *= scale
            m_m *= scale
        while True:
            high = r + m_p
            if high >= s if round_h else high > s:
                s *= B
                k += 1
            elif high * B < s if round_h else high * B <= s:
                r *= B
                m_p *= B
                m_m *= B
                k -= 1
            else:
                break

        result = FormatResult(radix=B, negative=negative, k=k, digits=[])
        if all_digits:
            self._generate_all(result, r, s, m_p, m_m, round_l, round_h)
        else:
            self._generate(result, r, s, m_p, m_m, round_l, round_h)
        return result

    def _generate(self, result, r, s, m_p, m_m, round_l, round_h):
        '''Shortest output.'''
        B = self.output_radix
        digits = result.digits
        while True:
            d, r = divmod(r * B, s)
            m_p *= B
            m_m *= B
            low_ok = r <= m_m if round_l else r < m_m
            high_ok = r + m_p >= s if round_h else r + m_p > s
            if not low_ok:
                if not high_ok:
                    digits.append(d)
                    continue
                digits.append(d + 1)
            elif not high_ok or r * 2 < s:
                digits.append(d)
            else:
                digits.append(d + 1)
            return

    def _generate_all(self, result, r, s, m_p, m_m, round_l, round_h):
        '''All significant digits, truncated.'''
        B = self.output_radix
        digits = result.digits
        # Only one-sided rounding ranges can repeat forever, and they do exactly when the
        # expansion of r / s in the output radix does not terminate
        if (m_p == 0 or m_m == 0) and r:
            period = expansion_period(r, s, B)
            if period is not None:
                self._repeated(result, r, s, *period)
                return

        while True:
            if r == 0 and m_p == 0:
                # Every further digit is zero
                return

            d, r = divmod(r * B, s)
            m_p *= B
            m_m *= B
            digits.append(d)

            low_ok = r <= m_m if round_l else r < m_m
            high_ok = r + m_p >= s if round_h else r + m_p > s
            if low_ok and high_ok:
                if r:
                    twice = r * 2
                    if twice > s:
                        result.round_up = 'hi'
                    elif twice == s:
                        result.round_up = 'tie'
                    else:
                        result.round_up = 'lo'
                return

    def _repeated(self, result, r, s, start, length):
        logger.debug('repeating cycle of %d digits after %d digits', length, start)
        if self.raise_on_repeat:
            raise InfiniteLoopError('infinite digit sequence')
        B = self.output_radix
        digits = result.digits
        for _ in range(start + length):
            d, r = divmod(r * B, s)
            digits.append(d)
        result.repeat = start


@attr.s(slots=True, kw_only=True, cmp=False)
class TextFormat:
    '''Controls the layout of numbers converted to text.'''

    # 'general' uses plain notation if the exponent is not positive and there are fewer
    # than max_leading_zeros zeroes after the point, otherwise scientific notation.
    # 'fixed' never shows an exponent and 'sci' always shows one.
    mode = attr.ib(default='general')
    # If True, exponents are multiples of three (engineering notation).
    eng = attr.ib(default=False)
    # If True, the exponent character and digits beyond 9 are in upper case.
    capitals = attr.ib(default=True)
    # If True, numbers with a positive sign are preceded with a '+'.
    force_leading_sign = attr.ib(default=False)
    # See mode.
    max_leading_zeros = attr.ib(default=6)
    # The string output for infinity
    inf = attr.ib(default='Infinity')
    # The string output for quiet NaNs
    qnan = attr.ib(default='NaN')
    # The string output for signalling NaNs
    snan = attr.ib(default='sNaN')

    def leading_sign(self, negative):
        '''Return the leading sign string.'''
        return '-' if negative else '+' if self.force_leading_sign else ''

    def exponent_str(self, exponent, radix=10):
        '''Return the exponent with its marker.  Digits beyond 9 would be ambiguous with 'e',
        so radices above 10 use '@'.'''
        if radix > 10:
            marker = '@'
        else:
            marker = 'E' if self.capitals else 'e'
        return f'{marker}{exponent:+d}'

    def format_non_finite(self, negative, tag, payload):
        '''tag is 'I', 'Q' or 'S'.  A zero payload is not shown.'''
        if tag == 'I':
            special = self.inf
        else:
            special = self.snan if tag == 'S' else self.qnan
            if payload:
                special += str(payload)
        return self.leading_sign(negative) + special

    def format_digits(self, negative, digits, exponent, radix=10):
        '''Lay out a finite number.  digits is the string of coefficient digits, exponent
        the exponent of the last of them.'''
        leftdigits = exponent + len(digits)
        mode = self.mode
        if mode == 'general':
            if exponent <= 0 and leftdigits > -self.max_leading_zeros:
                mode = 'fixed'
            else:
                mode = 'sci'

        if mode == 'fixed':
            dotplace = leftdigits
        elif not self.eng:
            dotplace = 1
        elif digits.strip('0') == '':
            dotplace = (leftdigits + 1) % 3 - 1
        else:
            dotplace = (leftdigits - 1) % 3 + 1

        if self.capitals:
            digits = digits.upper()

        if dotplace <= 0:
            body = '0.' + '0' * -dotplace + digits
        elif dotplace >= len(digits):
            body = digits + '0' * (dotplace - len(digits))
        else:
            body = digits[:dotplace] + '.' + digits[dotplace:]

        if leftdigits != dotplace:
            body += self.exponent_str(leftdigits - dotplace, radix)
        return self.leading_sign(negative) + body


DefaultTextFormat = TextFormat()
