#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

__all__ = ('ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_DOWN', 'ROUND_UP',
           'ROUND_HALF_EVEN', 'ROUND_HALF_DOWN', 'ROUND_HALF_UP', 'ROUND_05UP',
           'ROUND_NEAREST', 'ALL_ROUNDINGS', 'NEAREST_ROUNDINGS',
           'is_nearest', 'simplified_rounding', 'round_up', 'round_coefficient')


# Rounding modes
ROUND_CEILING   = 'ROUND_CEILING'       # Towards +infinity
ROUND_FLOOR     = 'ROUND_FLOOR'         # Towards -infinity
ROUND_DOWN      = 'ROUND_DOWN'          # Towards zero
ROUND_UP        = 'ROUND_UP'            # Away from zero
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'     # To nearest with ties towards even
ROUND_HALF_DOWN = 'ROUND_HALF_DOWN'     # To nearest with ties towards zero
ROUND_HALF_UP   = 'ROUND_HALF_UP'       # To nearest with ties away from zero
ROUND_05UP      = 'ROUND_05UP'          # Away from zero if last digit is 0 or radix/2

# Only meaningful to the formatter and reader: any round-to-nearest mode will do, so
# the reader must not depend on how ties are broken.
ROUND_NEAREST   = 'ROUND_NEAREST'

ALL_ROUNDINGS = (ROUND_CEILING, ROUND_FLOOR, ROUND_DOWN, ROUND_UP,
                 ROUND_HALF_EVEN, ROUND_HALF_DOWN, ROUND_HALF_UP, ROUND_05UP)
NEAREST_ROUNDINGS = frozenset((ROUND_HALF_EVEN, ROUND_HALF_DOWN, ROUND_HALF_UP,
                               ROUND_NEAREST))


def is_nearest(rounding):
    '''Return True if the rounding mode rounds to nearest (ignoring ties).'''
    return rounding in NEAREST_ROUNDINGS


def simplified_rounding(rounding, sign):
    '''Map the sign-dependent directed modes onto ROUND_UP or ROUND_DOWN for a value of the
    given sign (+1 or -1).  Other modes are returned unchanged.'''
    if rounding == ROUND_CEILING:
        return ROUND_UP if sign > 0 else ROUND_DOWN
    if rounding == ROUND_FLOOR:
        return ROUND_DOWN if sign > 0 else ROUND_UP
    return rounding


def round_up(rounding, sign, kept, remainder, divisor, radix):
    '''Return True if, when an operation is inexact, the kept coefficient should be
    incremented (i.e. rounded away from zero).

    The discarded part of the coefficient is remainder / divisor, 0 <= remainder <
    divisor.  kept is the coefficient that survives, whose last digit is needed for
    ties-to-even and 05up rounding.  sign is +1 or -1.
    '''
    if remainder == 0:
        return False

    # Doubling avoids halving an odd divisor
    twice = remainder * 2
    if rounding == ROUND_HALF_EVEN:
        if twice == divisor:
            return (kept % radix) % 2 == 1
        return twice > divisor
    elif rounding == ROUND_HALF_UP:
        return twice >= divisor
    elif rounding == ROUND_HALF_DOWN:
        return twice > divisor
    elif rounding == ROUND_CEILING:
        return sign > 0
    elif rounding == ROUND_FLOOR:
        return sign < 0
    elif rounding == ROUND_DOWN:
        return False
    elif rounding == ROUND_UP:
        return True
    elif rounding == ROUND_05UP:
        digit = kept % radix
        return digit == 0 or digit == radix // 2
    raise ValueError(f'invalid rounding mode {rounding!r}')


def round_coefficient(coefficient, digits, radix, rounding, sign):
    '''Drop the low digits of a non-negative coefficient, rounding the result.

    Returns a (kept, changed) pair where changed is 0 if nothing non-zero was discarded,
    1 if the kept coefficient was incremented and -1 if it was truncated.
    '''
    if digits <= 0:
        return coefficient * radix ** -digits, 0
    divisor = radix ** digits
    kept, remainder = divmod(coefficient, divisor)
    if remainder == 0:
        return kept, 0
    if round_up(rounding, sign, kept, remainder, divisor, radix):
        return kept + 1, 1
    return kept, -1
