#
# An implementation of arbitrary-precision floating-point arithmetic in any radix
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from .rounding import *
from .num import *
from .formatter import *
from .reader import *

from . import rounding, num, formatter, reader

__all__ = rounding.__all__ + num.__all__ + formatter.__all__ + reader.__all__
