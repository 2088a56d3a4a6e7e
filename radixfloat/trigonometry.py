#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

'''Integer kernels for pi and the circular and hyperbolic functions.

The d-functions approximate f(x) for x = c * radix**e, c >= 0, returning a triple
(value, error, exponent): value * radix**exponent is within error * radix**exponent of
f(x).  Unlike the kernels of intmath the error is worked out as the kernel goes, because
near a pole or a zero of f it can be arbitrarily large in relative terms.  Num rounds an
approximation with unambiguous_coefficient(), and asks for more places if it fails.
'''

import logging

from .intmath import (
    number_of_digits, guard_digits, strip_zeros, div_nearest, sqrt_nearest, dexp, dlog,
    is_unambiguous,
)

__all__ = ('pi_digits', 'unambiguous_coefficient', 'isincos', 'iatan', 'dpi', 'dsincos',
           'dtan', 'datan', 'datan_ratio', 'dasin', 'dacos', 'dsinh', 'dcosh', 'dtanh',
           'dasinh', 'dacosh', 'datanh')

logger = logging.getLogger(__name__)

# Extra digits computed by pi_digits() to detect a trailing run of zeroes
PI_EXTRA = 3
# Bounds the truncation errors of the two arccot series relative to their length
PI_GUARD = 20


def unambiguous_coefficient(value, error, precision, radix):
    '''value approximates some y to within error units.  Return (coefficient, shift) such
    that coefficient * radix**shift is within radix**shift of |y| and rounds the same way
    to precision digits wherever |y| lies; or None if the approximation is too coarse.'''
    shift = guard_digits(radix, 2 * error + 1)
    coefficient = div_nearest(abs(value), radix ** shift)
    if is_unambiguous(coefficient, precision, radix):
        return coefficient, shift
    return None


def _fixed(c, e, w, radix):
    '''c * radix**(e + w) to the nearest integer.'''
    shift = e + w
    if shift >= 0:
        return c * radix ** shift
    return div_nearest(c, radix ** -shift)


def _iarccot(x, m):
    '''m * arccot(x) for an integer x >= 2.  Each term of the series is truncated, so the
    error is at most the number of terms.'''
    x2 = x * x
    power = total = m // x
    n = 1
    while power:
        power //= x2
        term = power // (2 * n + 1)
        total += -term if n & 1 else term
        n += 1
    return total


# radix -> (places, value) with value == floor(radix**places * pi).  Only ever replaced
# wholesale, so a concurrent reader sees an old or a new pair, both valid.
_pi_cache = {}


def pi_digits(p, radix):
    '''Return floor(radix**p * pi) for an integer p >= 0.'''
    if p < 0:
        raise ValueError('p must be non-negative')
    cached = _pi_cache.get(radix)
    if cached is None or cached[0] < p:
        extra = PI_EXTRA
        while True:
            places = p + extra
            inc = guard_digits(radix, PI_GUARD * (places + 20) * radix.bit_length())
            m = radix ** (places + inc)
            # Machin: pi = 16 * arccot(5) - 4 * arccot(239).  Within one unit
            approx = div_nearest(16 * _iarccot(5, m) - 4 * _iarccot(239, m), radix ** inc)
            if approx % radix ** extra:
                break
            logger.debug('pi digits ambiguous in radix %d at %d places', radix, places)
            extra += PI_EXTRA
        # The digits before the last non-zero one are exact
        approx, zeros = strip_zeros(approx, radix)
        cached = (places - zeros - 1, approx // radix)
        _pi_cache[radix] = cached

    places, value = cached
    return value // radix ** (places - p)


def dpi(numerator, denominator, w, radix):
    '''pi * numerator / denominator.'''
    value = pi_digits(w, radix) * numerator // denominator
    return value, numerator // denominator + 2, -w


def isincos(x, m):
    '''Given integers 0 <= x <= m, return integer approximations to m * sin(x/m) and
    m * cos(x/m), each with absolute error at most 2 * m.bit_length() + 8.'''
    s = c = 0
    term, k = m, 0
    while term:
        # term is about m * (x/m)**k / k!
        if k & 1:
            s += -term if k & 2 else term
        else:
            c += -term if k & 2 else term
        k += 1
        term = term * x // (m * k)
    return s, c


def iatan(x, m):
    '''Given integers 0 <= x <= m, return an integer approximation to m * atan(x/m) with
    absolute error at most 2 * m.bit_length() + 24.'''
    # atan(y) = 2 * atan(y / (1 + sqrt(1 + y*y))) twice leaves y below tan(pi/16) < 1/5
    for _ in range(2):
        x = div_nearest(m * x, m + sqrt_nearest(m * m + x * x, m))
    x2 = div_nearest(x * x, m)
    total = power = x
    k = 1
    while power:
        power = power * x2 // m
        k += 2
        term = power // k
        total += -term if k & 2 else term
    return 4 * total


def _atan_error(m):
    return 2 * m.bit_length() + 24


def _reduce(c, e, w, radix):
    '''Write x = c * radix**e as n * pi/2 + r.  Returns n and an approximation to
    r * radix**w with |r| about pi/4 at most, with error below 2.'''
    # x < radix**(extra - 1)
    extra = max(0, e + number_of_digits(c, radix)) + 1
    q = w + extra
    x = _fixed(c, e, q, radix)
    pi = pi_digits(q, radix)
    n = div_nearest(2 * x, pi)
    return n, div_nearest(2 * x - n * pi, 2 * radix ** extra)


def dsincos(c, e, w, radix):
    '''Return (s, c, error) with s and c approximations to radix**w * sin(x) and
    radix**w * cos(x) for x = c * radix**e.  w must be at least 4.'''
    m = radix ** w
    n, r = _reduce(c, e, w, radix)
    s, co = isincos(abs(r), m)
    if r < 0:
        s = -s
    s, co = ((s, co), (co, -s), (-s, -co), (-co, s))[n % 4]
    return s, co, 2 * m.bit_length() + 10


def dtan(c, e, w, radix):
    m = radix ** w
    s, co, error = dsincos(c, e, w, radix)
    if abs(co) <= 2 * error:
        # Too near a pole to say anything
        return 0, 1, -w
    # |S/C - s/c| <= error * (|c| + |s|) / (|c| * (|c| - error))
    bound = m * error * (abs(co) + abs(s)) // (abs(co) * (abs(co) - error)) + 2
    return div_nearest(s * m, co), bound, -w


def datan_ratio(numerator, denominator, w, radix):
    '''atan(numerator / denominator) for integers numerator >= 0 and denominator > 0.'''
    m = radix ** w
    if numerator <= denominator:
        return iatan(div_nearest(numerator * m, denominator), m), _atan_error(m) + 1, -w
    # pi/2 - atan(1/x)
    half_pi, error, _ = dpi(1, 2, w, radix)
    value = half_pi - iatan(div_nearest(denominator * m, numerator), m)
    return value, _atan_error(m) + error + 1, -w


def _as_ratio(c, e, radix):
    if e >= 0:
        return c * radix ** e, 1
    return c, radix ** -e


def datan(c, e, w, radix):
    return datan_ratio(*_as_ratio(c, e, radix), w, radix)


def _cosine_of_asin(numerator, denominator, m):
    '''m * sqrt(1 - x*x) for x = numerator / denominator in [0, 1], within 3/2.'''
    d2 = denominator * denominator
    a = (d2 - numerator * numerator) * m * m // d2
    return sqrt_nearest(a, m) if a else 0


def dasin(c, e, w, radix):
    '''asin(x) for 0 < x <= 1.'''
    m = radix ** w
    numerator, denominator = _as_ratio(c, e, radix)
    # asin(x) = 2 * atan(x / (1 + sqrt(1 - x*x)))
    root = _cosine_of_asin(numerator, denominator, m)
    arg = min(div_nearest(numerator * m * m, denominator * (m + root)), m)
    return 2 * iatan(arg, m), 2 * _atan_error(m) + 5, -w


def dacos(c, e, w, radix, negative):
    '''acos(x) for 0 <= |x| < 1, x negative if negative is true.'''
    m = radix ** w
    numerator, denominator = _as_ratio(c, e, radix)
    # acos(x) = 2 * atan(sqrt(1 - x*x) / (1 + x)) for x >= 0
    root = _cosine_of_asin(numerator, denominator, m)
    arg = div_nearest(root * denominator, denominator + numerator)
    value, error = 2 * iatan(arg, m), 2 * _atan_error(m) + 5
    if negative:
        # acos(-x) = pi - acos(x)
        pi, pi_error, _ = dpi(1, 1, w, radix)
        value, error = pi - value, error + pi_error
    return value, error, -w


def _exp_pair(c, e, q, radix):
    '''exp(x) and exp(-x) to q digits as integers a and b in units of radix**f.  Returns
    (a, b, f, error) where a is within one unit and b within error units.'''
    a, f = dexp(c, e, q, radix)
    b, g = dexp(-c, e, q, radix)
    shift = f - g
    if shift < 0:
        return a, b * radix ** -shift, f, radix ** -shift
    if shift <= q + 2:
        return a, div_nearest(b, radix ** shift), f, 2
    # exp(-x) is below a hundredth of a unit
    return a, 0, f, 1


def dsinh(c, e, q, radix):
    '''sinh(x) with q digits of exp(x).'''
    a, b, f, error = _exp_pair(c, e, q, radix)
    return div_nearest(a - b, 2), error + 2, f


def dcosh(c, e, q, radix):
    '''cosh(x) with q digits of exp(x).'''
    a, b, f, error = _exp_pair(c, e, q, radix)
    return div_nearest(a + b, 2), error + 2, f


def dtanh(c, e, w, radix):
    m = radix ** w
    # exp(-2x) < 1 so is found to below a unit in radix**-w
    b, g = dexp(-2 * c, e, w + 3, radix)
    b = div_nearest(b, radix ** -(g + w))
    # tanh(x) = (1 - exp(-2x)) / (1 + exp(-2x)); the derivative is at most 2
    return div_nearest((m - b) * m, m + b), 4, -w


def _log_of_sum(x, root, scale, w, radix):
    # ln((x + root) / radix**scale); x + root is at least radix**scale and within 1/2
    total = x + root
    return dlog(total, -scale, w, radix), 2, -w


def dasinh(c, e, w, radix):
    '''asinh(x) for x > 0.'''
    # x exactly at a scale of at least w + 1 places
    scale = max(w + 1, -e)
    x, m = c * radix ** (e + scale), radix ** scale
    # asinh(x) = ln(x + sqrt(x*x + 1))
    return _log_of_sum(x, sqrt_nearest(x * x + m * m, m), scale, w, radix)


def dacosh(c, e, w, radix):
    '''acosh(x) for x > 1.'''
    scale = max(w + 1, -e)
    x, m = c * radix ** (e + scale), radix ** scale
    # acosh(x) = ln(x + sqrt(x*x - 1))
    return _log_of_sum(x, sqrt_nearest(x * x - m * m, m), scale, w, radix)


def datanh(c, e, w, radix):
    '''atanh(x) for 0 < x < 1.'''
    # atanh(x) = (ln(1 + x) - ln(1 - x)) / 2, x = c / radix**k
    k = -e
    unit = radix ** k
    value = dlog(unit + c, e, w, radix) - dlog(unit - c, e, w, radix)
    return div_nearest(value, 2), 2, -w
