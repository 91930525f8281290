import operator

from scipy.special import comb

from combinadic_config import DEFAULT, width_limit
from combinadic_errors import (
    CombinadicOverflowError,
    DimensionMismatchError,
    InvalidInputError,
    InvalidRankError,
)


def _check(value, limit):
    if limit is not None and value > limit:
        raise CombinadicOverflowError(value, limit)
    return value


def falling_factorial(x, n, limit=None):
    """
    The falling factorial x (x - 1) ... (x - n + 1).
    Every partial product is checked against limit.

    The product has a zero factor when x < n, so it vanishes and nothing is multiplied.
    """
    if x < n:
        return 0

    product = 1

    for j in range(n):
        product = _check(product * (x - j), limit)

    return product


def checked_factorial(n, limit=None):
    factorial = 1

    for j in range(2, n + 1):
        factorial = _check(factorial * j, limit)

    return factorial


def binomial(x, n, limit=None, factorial=None):
    """
    The binomial coefficient C(x, n) as falling_factorial(x, n) / n!.
    The division is exact and done once, after the full product is assembled.

    :param factorial: n! when already known (e.g., carried over by the caller)
    """
    if factorial is None:
        factorial = checked_factorial(n, limit)

    return falling_factorial(x, n, limit) // factorial


def validate_tuple(ntuple):
    try:
        ntuple = [operator.index(x) for x in ntuple]
    except TypeError as err:
        raise InvalidInputError(f'Expected a sequence of integers, got {ntuple!r}') from err

    if not ntuple:
        raise DimensionMismatchError('Cannot encode an empty tuple')

    if ntuple[0] < 0:
        raise InvalidInputError(f'Tuple elements must be natural numbers, got {ntuple[0]}')

    for previous, current in zip(ntuple, ntuple[1:]):
        if previous >= current:
            raise InvalidInputError(
                f'Tuple must be strictly increasing, got {previous} followed by {current}'
            )

    return ntuple


def validate_dimension(k):
    try:
        k = operator.index(k)
    except TypeError as err:
        raise DimensionMismatchError(f'Dimension must be an integer, got {k!r}') from err

    if k < 1:
        raise DimensionMismatchError(f'Dimension must be positive, got {k}')

    return k


def encode(ntuple, width=DEFAULT):
    """
    Rank of a strictly increasing tuple in the combinatorial number system of degree k = len(ntuple):

        rank = sum_i  x_i (x_i - 1) ... (x_i - i) / (i + 1)!  =  sum_i C(x_i, i + 1)

    For fixed k, the tuples with max element <= m are mapped onto 0, 1, ..., C(m + 1, k) - 1.

    :param ntuple: strictly increasing sequence of natural numbers
    :param width: integer width (numpy integer dtype) or None for arbitrary precision
    :return: int
    """
    limit = width_limit(width)
    ntuple = validate_tuple(ntuple)

    rank = 0
    factorial = 1

    for i, x in enumerate(ntuple):
        # (i + 1)! from i!
        factorial = _check(factorial * (i + 1), limit)

        rank = _check(rank + binomial(x, i + 1, limit, factorial=factorial), limit)

    return rank


def decode(rank, k, width=DEFAULT):
    """
    The strictly increasing k-tuple encoding to rank, i.e., the inverse of encode.

    The digits are extracted greedily starting from the largest one.
    See https://planetcalc.com/8592/

    Note:
        assert encode(decode(rank, k)) == rank

    :param rank: natural number
    :param k: dimension of the tuple
    :param width: integer width (numpy integer dtype) or None for arbitrary precision
    :return: list of k ints
    """
    limit = width_limit(width)
    k = validate_dimension(k)

    try:
        rank = operator.index(rank)
    except TypeError as err:
        raise InvalidRankError(f'Rank must be an integer, got {rank!r}') from err

    if rank < 0:
        raise InvalidRankError(f'Rank must be a natural number, got {rank}')

    _check(rank, limit)

    ntuple = [0] * k

    remaining = rank

    # C(c, j) >= c whenever j < c, so no digit exceeds max(rank, k)
    c_start = max(rank, k)

    for j in range(k, 0, -1):
        #############################################################
        # Find the largest c with C(c, j) <= remaining by bisection.
        #############################################################
        left = 0

        right = c_start + 1  # Increase the range by 1 to include c_start

        while left < right:

            mid = (left + right) // 2

            if comb(mid, j, exact=True) <= remaining:
                left = mid + 1
            else:
                right = mid

        c = left - 1  # Return the previous value since C(left, j) > remaining
        #############################################################

        # same checked arithmetic as encode applies to this term
        remaining -= binomial(c, j, limit)

        c_start = c - 1
        ntuple[j - 1] = c

    if remaining != 0:
        raise InvalidRankError(f'No {k}-tuple encodes to {rank}')

    return ntuple
