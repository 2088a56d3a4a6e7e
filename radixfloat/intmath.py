#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

'''Integer fixed-point kernels.

Everything here works on Python integers only.  A real number z is represented by an
integer approximation to z * M, where M is a power of the radix, and each kernel documents
the absolute error of its result in units of 1/M.  The floating point layer in num.py
builds correctly rounded results on top of these by widening the working precision until
an approximation is unambiguously roundable.
'''

import logging
from fractions import Fraction
from math import ceil, gcd, log

__all__ = ('number_of_digits', 'int_to_string', 'string_to_int', 'guard_digits',
           'strip_zeros', 'div_nearest', 'rshift_nearest', 'sqrt_nearest', 'ilog', 'iexp',
           'log_radix_digits', 'dlog', 'dlog_radix', 'dlog_base', 'dexp', 'dpower',
           'is_unambiguous', 'log_radix_lb', 'log_radix_exp_bound', 'ln_exp_bound',
           'log_base_exp_bound', 'exact_power', 'rational_power', 'radix_exponent', 'exact_log',
           'nth_root', 'minimal_root', 'prime_factors', 'multiplicative_order',
           'expansion_period')

logger = logging.getLogger(__name__)

DIGIT_CHARS = '0123456789abcdefghijklmnopqrstuvwxyz'

# Fixed-point guard sizes.  Each is a lower bound on the guard factor; guard_digits()
# turns it into a digit count for a given radix (4 decimal digits for 10**4 and so on).
LOG_PREC_GUARD = 10 ** 4
EXP_PREC_GUARD = 10 ** 4
LOG_RADIX_GUARD = 100
POWER_GUARD = 10
# Extra digits computed by log_radix_digits() to detect a trailing run of zeroes
LOG_RADIX_EXTRA = 3
# Scale of the lower bounds returned by log_radix_lb()
LOG_MULT = 100
# Beyond this many bits int() and str() are quadratic (and limited on recent Pythons)
STR_DIRECT_BITS = 8000


def number_of_digits(n, radix=10):
    '''Return the number of base-radix digits of abs(n).  Zero has one digit.'''
    n = abs(n)
    if n < radix:
        return 1
    if radix & (radix - 1) == 0:
        shift = radix.bit_length() - 1
        return (n.bit_length() + shift - 1) // shift
    digits = int((n.bit_length() - 1) * log(2) / log(radix))
    power = radix ** digits
    # Floating point error in the estimate
    while power > n:
        digits -= 1
        power //= radix
    while power * radix <= n:
        digits += 1
        power *= radix
    return digits + 1


def int_to_string(n, radix=10):
    '''Return the digits of a non-negative integer in the given radix, lower case.'''
    if n < 0:
        raise ValueError('int_to_string needs a non-negative integer')
    if radix == 10 and n.bit_length() < STR_DIRECT_BITS:
        return str(n)
    if radix in (2, 8, 16):
        return format(n, {2: 'b', 8: 'o', 16: 'x'}[radix])
    if n.bit_length() < 64:
        if n == 0:
            return '0'
        chars = []
        while n:
            n, digit = divmod(n, radix)
            chars.append(DIGIT_CHARS[digit])
        return ''.join(reversed(chars))
    half = number_of_digits(n, radix) // 2
    high, low = divmod(n, radix ** half)
    return int_to_string(high, radix) + int_to_string(low, radix).rjust(half, '0')


def string_to_int(digits, radix=10):
    '''Inverse of int_to_string().  Accepts upper or lower case digits.'''
    if len(digits) * radix.bit_length() < STR_DIRECT_BITS or radix in (2, 4, 8, 16, 32):
        return int(digits, radix)
    half = len(digits) // 2
    high = string_to_int(digits[:-half], radix)
    return high * radix ** half + string_to_int(digits[-half:], radix)


def guard_digits(radix, factor):
    '''Return the smallest k such that radix**k >= factor.'''
    k, power = 0, 1
    while power < factor:
        power *= radix
        k += 1
    return k


def strip_zeros(coefficient, radix, limit=None):
    '''Remove trailing zero digits from a coefficient, at most limit of them.  Returns a
    (coefficient, count) pair.  A zero coefficient is returned unchanged.'''
    count = 0
    if coefficient:
        while coefficient % radix == 0 and (limit is None or count < limit):
            coefficient //= radix
            count += 1
    return coefficient, count


def div_nearest(a, b):
    '''Closest integer to a/b, b positive; ties go to even.'''
    q, r = divmod(a, b)
    return q + (2 * r + (q & 1) > b)


def rshift_nearest(x, shift):
    '''Closest integer to x / 2**shift, shift non-negative; ties go to even.'''
    b, q = 1 << shift, x >> shift
    return q + (2 * (x & (b - 1)) + (q & 1) > b)


def sqrt_nearest(n, a):
    '''Closest integer to the square root of the positive integer n.  a is an initial
    approximation; any positive integer will do but closer converges faster.'''
    if n <= 0 or a <= 0:
        raise ValueError('both arguments to sqrt_nearest must be positive')
    b = 0
    while a != b:
        b, a = a, a - -n // a >> 1
    return a


def _taylor_terms(m, l):
    # Chosen so that (2**l)**T > m
    return -(-10 * number_of_digits(m) // (3 * l))


def ilog(x, m, l=8):
    '''Given positive integers x and m, return an integer approximation to m * ln(x/m).

    For l = 8 and 0.1 <= x/m <= 10 the absolute error is at most 22.
    '''
    # log1p(y) = 2*log1p(y/(1+sqrt(1+y))) is applied R times until |y| < 2**-l, then
    # the Taylor series finishes.  y is kept as an approximation to 2**R * y * m.
    y = x - m
    r = 0
    while (r <= l and abs(y) << (l - r) >= m or
           r > l and abs(y) >> (r - l) >= m):
        y = div_nearest((m * y) << 1,
                        m + sqrt_nearest(m * (m + rshift_nearest(y, r)), m))
        r += 1

    t = _taylor_terms(m, l)
    yshift = rshift_nearest(y, r)
    w = div_nearest(m, t)
    for k in range(t - 1, 0, -1):
        w = div_nearest(m, k) - div_nearest(yshift * w, m)

    return div_nearest(w * y, m)


def iexp(x, m, l=8):
    '''Given integers x and m, m > 0, such that x/m is small, return an integer
    approximation to m * exp(x/m).

    For 0 <= x/m <= 2.4 the absolute error is at most 60.
    '''
    # expm1(z / 2**R) by Taylor series, then expm1(2z) = expm1(z) * (expm1(z) + 2)
    # applied R times.
    r = ((x << l) // m).bit_length()

    t = _taylor_terms(m, l)
    y = div_nearest(x, t)
    mshift = m << r
    for i in range(t - 1, 0, -1):
        y = div_nearest(x * (mshift + y), mshift * i)

    for k in range(r - 1, -1, -1):
        mshift = m << (k + 2)
        y = div_nearest(y * (y + mshift), mshift)

    return m + y


# radix -> (places, value) with value == floor(radix**places * ln(radix)).  Only ever
# replaced wholesale, so a concurrent reader sees an old or a new pair, both valid.
_log_radix_cache = {}


def log_radix_digits(p, radix):
    '''Return floor(radix**p * ln(radix)) for an integer p >= 0.'''
    if p < 0:
        raise ValueError('p must be non-negative')
    cached = _log_radix_cache.get(radix)
    if cached is None or cached[0] < p:
        inc = guard_digits(radix, LOG_RADIX_GUARD)
        extra = LOG_RADIX_EXTRA
        while True:
            # Correct to within one unit in the last place
            places = p + extra
            m = radix ** (places + inc)
            approx = div_nearest(ilog(radix * m, m), radix ** inc)
            if approx % radix ** extra:
                break
            logger.debug('log(%d) digits ambiguous at %d places', radix, places)
            extra += LOG_RADIX_EXTRA
        # The digits before the last non-zero one are exact
        approx, zeros = strip_zeros(approx, radix)
        cached = (places - zeros - 1, approx // radix)
        _log_radix_cache[radix] = cached

    places, value = cached
    return value // radix ** (places - p)


def _split_exponent(c, e, radix):
    '''Write c * radix**e as d * radix**f with either f >= 0 and 1 <= d <= radix, or f <= 0
    and 1/radix <= d <= 1.  Returns f.'''
    l = number_of_digits(c, radix)
    return e + l - (e + l >= 1)


def dlog(c, e, p, radix):
    '''Given integers c > 0 and e, and p, return an integer approximation to radix**p *
    ln(c * radix**e) with absolute error at most 1.  c * radix**e must not be exactly 1.'''
    inc = guard_digits(radix, LOG_PREC_GUARD)
    p += inc

    # ln(c * radix**e) = ln(d) + f * ln(radix)
    f = _split_exponent(c, e, radix)

    if p > 0:
        k = e + p - f
        if k >= 0:
            c *= radix ** k
        else:
            c = div_nearest(c, radix ** -k)
        # ilog magnifies the error in c by at most radix
        log_d = ilog(c, radix ** p)
    else:
        log_d = 0

    if f:
        extra = number_of_digits(f, radix) - 1
        if p + extra >= 0:
            f_log_r = div_nearest(f * log_radix_digits(p + extra, radix), radix ** extra)
        else:
            f_log_r = 0
    else:
        f_log_r = 0

    return div_nearest(f_log_r + log_d, radix ** inc)


def dlog_radix(c, e, p, radix):
    '''Given integers c > 0 and e, and p, return an integer approximation to radix**p *
    log_radix(c * radix**e) with absolute error at most 1.'''
    inc = guard_digits(radix, LOG_RADIX_GUARD)
    p += inc

    f = _split_exponent(c, e, radix)

    if p > 0:
        m = radix ** p
        k = e + p - f
        if k >= 0:
            c *= radix ** k
        else:
            c = div_nearest(c, radix ** -k)
        log_d = ilog(c, m)
        log_d = div_nearest(log_d * m, log_radix_digits(p, radix))
        log_power = f * m
    else:
        log_d = 0
        log_power = div_nearest(f, radix ** -p)

    return div_nearest(log_power + log_d, radix ** inc)


def dlog_base(c, e, p, radix, base):
    '''Given integers c > 0 and e, p and an integer base >= 2, return an integer
    approximation to radix**p * log_base(c * radix**e) with absolute error at most 1.'''
    if base == radix:
        return dlog_radix(c, e, p, radix)
    adj = e + number_of_digits(c, radix) - 1
    k = guard_digits(radix, LOG_RADIX_GUARD * (abs(adj) + 2))
    numerator = dlog(c, e, p + k, radix)
    denominator = dlog(base, 0, p + k, radix)
    return div_nearest(numerator * radix ** p, denominator)


def dexp(c, e, p, radix):
    '''Compute an approximation to exp(c * radix**e) with p digits of precision.

    Returns integers d, f such that radix**(p-1) <= d <= radix**p and
    (d-1) * radix**f < exp(c * radix**e) < (d+1) * radix**f.
    '''
    inc = guard_digits(radix, EXP_PREC_GUARD)
    p += inc

    # ln(radix) with extra precision equal to the adjusted exponent of c * radix**e
    extra = max(0, e + number_of_digits(c, radix) - 1)
    q = p + extra

    # c * radix**e / ln(radix), rounding down
    shift = e + q
    if shift >= 0:
        cshift = c * radix ** shift
    else:
        cshift = c // radix ** -shift
    quot, rem = divmod(cshift, log_radix_digits(q, radix))

    rem = div_nearest(rem, radix ** extra)

    return (div_nearest(iexp(rem, radix ** p), radix ** (inc + 1)),
            quot - p + (inc + 1))


def dpower(xc, xe, yc, ye, p, radix):
    '''Given integers with x = xc * radix**xe positive and not 1, and y = yc * radix**ye
    non-zero, return integers (c, e) with radix**(p-1) <= c <= radix**p and
    (c-1) * radix**e < x**y < (c+1) * radix**e.'''
    g = guard_digits(radix, POWER_GUARD)

    # radix**(b-1) <= |y| <= radix**b
    b = number_of_digits(yc, radix) + ye

    # ln(x) = lxc * radix**(-p-b-g)
    lxc = dlog(xc, xe, p + b + g, radix)

    # y * ln(x) = pc * radix**(-p-g)
    shift = ye - b
    if shift >= 0:
        pc = lxc * yc * radix ** shift
    else:
        pc = div_nearest(lxc * yc, radix ** -shift)

    if pc == 0:
        # A result that isn't exactly 1 is easier to round correctly
        if (number_of_digits(xc, radix) + xe >= 1) == (yc > 0):
            coeff, exp = radix ** (p - 1) + 1, 1 - p
        else:
            coeff, exp = radix ** p - 1, -p
    else:
        coeff, exp = dexp(pc, -(p + g), p + g, radix)
        coeff = div_nearest(coeff, radix ** g)
        exp += g

    return coeff, exp


def is_unambiguous(coefficient, precision, radix):
    '''Return True if every approximation strictly within one unit of coefficient rounds to
    precision digits the same way, under every rounding mode.

    Rounding boundaries are the multiples of half a unit in the last kept place.'''
    coefficient = abs(coefficient)
    surplus = number_of_digits(coefficient, radix) - precision
    if surplus <= 0:
        return False
    unit = radix ** surplus
    twice = 2 * coefficient
    return all((twice + delta) % unit for delta in (-1, 0, 1))


def log_radix_lb(c, radix):
    '''Return a lower bound for LOG_MULT * log_radix(c), c a positive integer.'''
    if c <= 0:
        raise ValueError('the argument to log_radix_lb must be positive')
    n = number_of_digits(c, radix)
    leading = c // radix ** (n - 1)
    if leading == 1:
        return LOG_MULT * (n - 1)
    return LOG_MULT * (n - 1) + int(LOG_MULT * log(leading) / log(radix))


def _ln_radix_bounds(radix):
    '''Return (m, low, high) with low / radix**m <= ln(radix) <= high / radix**m.'''
    m = guard_digits(radix, 100)
    scaled = log(radix) * radix ** m
    return m, int(scaled) - 1, int(scaled) + 1


def log_radix_exp_bound(c, e, radix):
    '''Return a lower bound for the adjusted exponent of log_radix(x), x = c * radix**e
    positive and not 1.'''
    adj = e + number_of_digits(c, radix) - 1
    if adj >= 1:
        # x >= radix
        return number_of_digits(adj, radix) - 1
    if adj <= -2:
        # x < 1/radix
        return number_of_digits(-1 - adj, radix) - 1

    # 1 - 1/x <= ln(x) <= x - 1 with ln(radix) <= high / radix**m
    m, _, high = _ln_radix_bounds(radix)
    if adj == 0:
        # 1 < x < radix
        num = c - radix ** -e
        return number_of_digits(num, radix) - number_of_digits(high * c, radix) - 1 + m
    # 1/radix <= x < 1
    num = radix ** -e - c
    return number_of_digits(num, radix) - 1 + e + m - number_of_digits(high, radix)


def ln_exp_bound(c, e, radix):
    '''Return a lower bound for the adjusted exponent of ln(x), x = c * radix**e positive
    and not 1.'''
    adj = e + number_of_digits(c, radix) - 1
    m, low, _ = _ln_radix_bounds(radix)
    if adj >= 1:
        return number_of_digits(adj * low, radix) - 1 - m
    if adj <= -2:
        return number_of_digits((-1 - adj) * low, radix) - 1 - m

    if adj == 0:
        # 1 < x < radix: ln(x) >= 1 - 1/x
        num = c - radix ** -e
        return number_of_digits(num, radix) - number_of_digits(c, radix) - 1
    # 1/radix <= x < 1: -ln(x) >= 1 - x
    num = radix ** -e - c
    return number_of_digits(num, radix) - 1 + e


def log_base_exp_bound(c, e, radix, base):
    '''Return a lower bound for the adjusted exponent of log_base(x).'''
    if base == radix:
        return log_radix_exp_bound(c, e, radix)
    return ln_exp_bound(c, e, radix) - number_of_digits(ceil(log(base)), radix)


def nth_root(c, n):
    '''Return the integer n-th root of c if c is a perfect n-th power, else None.'''
    if n == 1 or c <= 1:
        return c
    # Newton's method from above
    a = 1 << -(-c.bit_length() // n)
    while True:
        q, r = divmod(c, a ** (n - 1))
        if a <= q:
            break
        a = (a * (n - 1) + q) // n
    if a == q and r == 0:
        return a
    return None


def radix_exponent(n, radix):
    '''Return the least k >= 0 with n dividing radix**k, or None if there is none (that
    is, if 1/n does not terminate in the radix).'''
    k = 0
    while n != 1:
        g = gcd(n, radix)
        if g == 1:
            return None
        n //= g
        k += 1
    return k


def prime_factors(n):
    '''Return a dict mapping the prime factors of n > 0 to their multiplicities.  This is
    trial division, quick only when all but one of the factors are small.'''
    factors = {}
    p = 2
    while p * p <= n:
        while n % p == 0:
            factors[p] = factors.get(p, 0) + 1
            n //= p
        p += 1 if p == 2 else 2
    if n > 1:
        factors[n] = factors.get(n, 0) + 1
    return factors


def multiplicative_order(a, n):
    '''Return the least k > 0 with a**k == 1 modulo n, for n > 1 coprime to a.'''
    # The order divides Euler's totient of n
    order = 1
    for p, k in prime_factors(n).items():
        order *= p ** (k - 1) * (p - 1)
    for p in prime_factors(order):
        while order % p == 0 and pow(a, order // p, n) == 1:
            order //= p
    return order


def expansion_period(numerator, denominator, radix):
    '''Return None if the radix expansion of numerator / denominator terminates.  Otherwise
    return (start, length): from digit start after the radix point (counting from 0) a
    cycle of length digits repeats forever, both as small as possible.  0 < numerator <
    denominator.'''
    denominator //= gcd(numerator, denominator)
    # denominator == shared * rest, rest coprime to the radix
    rest = denominator
    g = gcd(rest, radix)
    while g > 1:
        rest //= g
        g = gcd(rest, radix)
    if rest == 1:
        return None
    return (radix_exponent(denominator // rest, radix),
            multiplicative_order(radix % rest, rest))


def _reciprocal_exact(zc, ze, p, radix):
    '''Return (c, e) with c * radix**e == 1 / (zc * radix**ze) if that has at most p digits,
    else None.  zc must not be divisible by radix.'''
    k = radix_exponent(zc, radix)
    if k is None:
        return None
    coefficient = radix ** k // zc
    if coefficient >= radix ** p:
        return None
    return coefficient, -k - ze


def exact_power(xc, xe, yc, ye, negative, p, radix, ideal_exponent=None):
    '''Attempt to compute x**y exactly with at most p digits, x = xc * radix**xe and y =
    (-1 if negative else 1) * yc * radix**ye.  Returns a (coefficient, exponent) pair or
    None if x**y is not exactly representable in p digits.

    x must be positive and not 1, y non-zero.  ideal_exponent is given when y is a
    non-negative integer; the result then gets as close to it as p digits allow.
    '''
    # Cheap tests eliminate most inexact cases.  Write y = m/n in lowest terms; then
    # xc must be an n-th power and xe divisible by n.
    xc, zeros = strip_zeros(xc, radix)
    xe += zeros
    yc, zeros = strip_zeros(yc, radix)
    ye += zeros

    # x is a power of the radix: radix**(xe*y) needs xe*y integral
    if xc == 1:
        xe *= yc
        xe, zeros = strip_zeros(xe, radix)
        ye += zeros
        if ye < 0:
            return None
        exponent = xe * radix ** ye
        if negative:
            exponent = -exponent
        if ideal_exponent is not None:
            zeros = max(0, min(exponent - ideal_exponent, p - 1))
        else:
            zeros = 0
        return radix ** zeros, exponent - zeros

    xc_bits = xc.bit_length()
    radix_bits = radix.bit_length()
    # Limit on the bits of xc**m for a representable result
    if negative:
        max_bits = radix_bits * (p * radix_bits + 1)
    else:
        max_bits = p * radix_bits

    if ye >= 0:
        # m >= radix**ye so huge ye cannot be exact; avoid computing m
        if ye > number_of_digits(max_bits, radix):
            return None
        m, n = yc * radix ** ye, 1
    else:
        # |y| < 1/|xe| or |y| < 1/nbits(xc) cannot be exact
        if xe != 0 and number_of_digits(yc * xe, radix) <= -ye:
            return None
        if number_of_digits(yc * xc_bits, radix) <= -ye:
            return None
        m, n = yc, radix ** -ye
        g = gcd(m, n)
        m //= g
        n //= g

    if n > 1:
        # 1 < xc < 2**n cannot be an n-th power
        if xc_bits <= n:
            return None
        xe, rem = divmod(xe, n)
        if rem:
            return None
        xc = nth_root(xc, n)
        if xc is None:
            return None

    if negative:
        if m * (xc.bit_length() - 1) >= max_bits:
            return None
        zc, zeros = strip_zeros(xc ** m, radix)
        return _reciprocal_exact(zc, xe * m + zeros, p, radix)

    # m > p / log_radix(xc) means xc**m > radix**p
    if xc > 1 and m > p * LOG_MULT // log_radix_lb(xc, radix):
        return None
    xc = xc ** m
    xe *= m
    if xc > radix ** p:
        return None

    if ideal_exponent is not None:
        zeros = max(0, min(xe - ideal_exponent, p - number_of_digits(xc, radix)))
    else:
        zeros = 0
    return xc * radix ** zeros, xe - zeros


def rational_power(xc, xe, yc, ye, negative, radix, max_bits):
    '''Return (numerator, denominator, exponent) with x**y == numerator / denominator *
    radix**exponent if x**y is rational, arguments as for exact_power().

    Returns None if x**y is irrational, or if numerator or denominator would need more
    than about max_bits bits.
    '''
    xc, zeros = strip_zeros(xc, radix)
    xe += zeros
    yc, zeros = strip_zeros(yc, radix)
    ye += zeros

    if ye >= 0:
        if ye > number_of_digits(max_bits, radix):
            return None
        m, n = yc * radix ** ye, 1
    else:
        m, n = yc, radix ** -ye
        g = gcd(m, n)
        m //= g
        n //= g

    if n > 1:
        if n > max_bits:
            return None
        # x = xc * radix**r * radix**(n*xe) with 0 <= r < n
        xe, r = divmod(xe, n)
        xc *= radix ** r
        # 1 < xc < 2**n cannot be an n-th power
        if xc > 1 and xc.bit_length() <= n:
            return None
        xc = nth_root(xc, n)
        if xc is None:
            return None

    if m * xc.bit_length() > max_bits:
        return None
    if negative:
        return 1, xc ** m, -xe * m
    return xc ** m, 1, xe * m


def _integer_log(value, base):
    '''Return n >= 0 if value == base**n, else None.'''
    n = 0
    while value % base == 0:
        value //= base
        n += 1
    return n if value == 1 else None


def minimal_root(n):
    '''Return (root, q) with n == root**q and q as large as possible.'''
    for q in range(n.bit_length(), 1, -1):
        root = nth_root(n, q)
        if root is not None:
            return root, q
    return n, 1


def exact_log(c, e, radix, base, limit=10000):
    '''Return log_base(c * radix**e) as a Fraction if it is rational, else None.

    With base == root**q for the smallest possible root, the logarithm is rational only
    if c * radix**e is an integral power of root.  Gives up (returning None) when the
    exponent is too large for the coefficient to be such a power.
    '''
    root, q = minimal_root(base)
    c, zeros = strip_zeros(c, radix)
    e += zeros
    if c == 1:
        # radix**e is a power of root only if radix is
        if e == 0:
            return Fraction(0)
        j = _integer_log(radix, root)
        return None if j is None else Fraction(e * j, q)
    if abs(e) > limit + 8 * c.bit_length():
        return None
    if e >= 0:
        n = _integer_log(c * radix ** e, root)
    else:
        # c is not divisible by radix so the value is not an integer
        denominator = radix ** -e
        if denominator % c:
            return None
        n = _integer_log(denominator // c, root)
        if n is not None:
            n = -n
    return None if n is None else Fraction(n, q)
