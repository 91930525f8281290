import operator

import numpy as np
from scipy.special import comb
from structlog import get_logger

from combinadic_config import DEFAULT, resolve_width
from combinadic_errors import (
    CombinadicError,
    CombinadicOverflowError,
    DimensionMismatchError,
    InvalidInputError,
    InvalidRankError,
)
from combinadic_util import decode, encode, validate_dimension, validate_tuple

logger = get_logger()


def _array_dtype(dtype):
    # arbitrary precision is stored as Python ints
    return object if dtype is None else dtype


def _validate_max_element(max_element):
    try:
        max_element = operator.index(max_element)
    except TypeError as err:
        raise InvalidInputError(f'Max element must be an integer, got {max_element!r}') from err

    if max_element < 0:
        raise InvalidInputError(f'Max element must be a natural number, got {max_element}')

    return max_element


def count_tuples(k, max_element):
    """
    Number of strictly increasing k-tuples with all elements <= max_element, i.e., C(max_element + 1, k).
    """
    k = validate_dimension(k)
    max_element = _validate_max_element(max_element)

    return comb(max_element + 1, k, exact=True)


def generate_tuples(k, max_element):
    """
    Generate all strictly increasing k-tuples with elements <= max_element in the order of their rank:
    first by the largest element, then by the next largest one and so on.

    This can be accomplished as

        [decode(rank, k) for rank in range(count_tuples(k, max_element))]

    The following code is equivalent, but it runs much faster.
    """
    k = validate_dimension(k)
    max_element = _validate_max_element(max_element)

    def generate_tuples_recursive(k, bound, suffix=()):
        if k == 0:
            yield list(suffix)
        else:
            for x in range(k - 1, bound + 1):
                yield from generate_tuples_recursive(k - 1, x - 1, (x,) + suffix)

    return generate_tuples_recursive(k, max_element)


def encode_many(tuples, width=DEFAULT):
    """
    Encode every row of tuples.

    :param tuples: iterable of tuples of the same length or 2D array
    :param width: integer width (numpy integer dtype) or None for arbitrary precision
    :return: np.ndarray - 1D array of ranks
    """
    dtype = resolve_width(width)

    ranks = []
    k = None

    for ntuple in tuples:
        ntuple = list(ntuple)

        if k is None:
            k = len(ntuple)
        elif len(ntuple) != k:
            raise DimensionMismatchError(f'Expected tuples of length {k}, got {len(ntuple)}')

        ranks.append(encode(ntuple, width=dtype))

    return np.array(ranks, dtype=_array_dtype(dtype))


def decode_many(ranks, k, width=DEFAULT):
    """
    Decode every rank.

    :param ranks: iterable of ranks
    :param k: dimension of the tuples
    :param width: integer width (numpy integer dtype) or None for arbitrary precision
    :return: np.ndarray - 2D array of shape (number of ranks, k)
    """
    dtype = resolve_width(width)
    k = validate_dimension(k)

    ntuples = [decode(rank, k, width=dtype) for rank in ranks]

    return np.array(ntuples, dtype=_array_dtype(dtype)).reshape(len(ntuples), k)


def max_safe_element(k, width=DEFAULT):
    """
    The largest m such that every k-tuple with elements <= m is encoded without overflow in the given width.

    The tuple (m - k + 1, ..., m) has the largest falling factorials and the largest rank among all the tuples
    with elements <= m, so it suffices to check it.

    :return: int or None for arbitrary precision
    """
    dtype = resolve_width(width)
    k = validate_dimension(k)

    if dtype is None:
        return None

    # Raises if even the smallest tuple does not fit
    encode(range(k), width=dtype)

    def fits(m):
        try:
            encode(range(m - k + 1, m + 1), width=dtype)
        except CombinadicOverflowError:
            return False
        return True

    ####################################################################################################################
    # Exponential search for an upper bound followed by the bisection.
    ####################################################################################################################
    left = k - 1
    right = 2 * k

    while fits(right):
        left = right
        right *= 2

    # fits(left) and not fits(right)
    while right - left > 1:
        mid = (left + right) // 2

        if fits(mid):
            left = mid
        else:
            right = mid

    return left


class CombinadicTable(object):
    """
    Precomputed minimal perfect hash of all strictly increasing k-tuples with elements <= max_element.
    The row self.tuples[rank] is the tuple encoding to rank.
    """
    def __init__(self, *, k, max_element, width=DEFAULT):
        """
        :param k: dimension of the tuples
        :param max_element: the largest element allowed in a tuple
        :param width: integer width (numpy integer dtype) or None for arbitrary precision
        """
        ################################################################################################################
        # save the parameters
        self.k = validate_dimension(k)
        self.max_element = _validate_max_element(max_element)
        self.dtype = resolve_width(width)
        ################################################################################################################

        ntuples = list(generate_tuples(self.k, self.max_element))

        # Encoding first: it raises on overflow before the values are cast to the width
        self.ranks = encode_many(ntuples, width=self.dtype)

        self.tuples = np.array(ntuples, dtype=_array_dtype(self.dtype)).reshape(len(ntuples), self.k)

        # The ranks must be exactly 0, 1, ..., N - 1
        if not np.array_equal(self.ranks, np.arange(len(ntuples))):
            raise CombinadicError(f'Ranks of the {self.k}-tuples up to {self.max_element} are not contiguous')

        logger.debug('combinadic table built', k=self.k, max_element=self.max_element, size=len(ntuples))

    def __len__(self):
        return len(self.ranks)

    def __contains__(self, ntuple):
        try:
            ntuple = validate_tuple(ntuple)
        except InvalidInputError:
            return False

        return len(ntuple) == self.k and ntuple[-1] <= self.max_element

    def rank(self, ntuple):
        """
        Rank of the tuple, which must belong to the table.
        """
        ntuple = validate_tuple(ntuple)

        if len(ntuple) != self.k:
            raise DimensionMismatchError(f'Expected a tuple of length {self.k}, got {len(ntuple)}')

        if ntuple[-1] > self.max_element:
            raise InvalidInputError(f'Element {ntuple[-1]} exceeds the table bound {self.max_element}')

        return encode(ntuple, width=self.dtype)

    def unrank(self, rank):
        """
        The tuple encoding to rank as a list of ints.
        """
        try:
            rank = operator.index(rank)
        except TypeError as err:
            raise InvalidRankError(f'Rank must be an integer, got {rank!r}') from err

        if not 0 <= rank < len(self):
            raise InvalidRankError(f'Rank {rank} is outside the table of size {len(self)}')

        return [int(_) for _ in self.tuples[rank]]

    def lookup(self, ranks):
        """
        Vectorized unrank.

        :param ranks: array-like of ranks
        :return: np.ndarray - rows of self.tuples
        """
        ranks = np.asarray(ranks)

        if ranks.dtype.kind == 'O':
            try:
                ranks = np.array([operator.index(_) for _ in ranks.ravel()], dtype=object).reshape(ranks.shape)
            except TypeError as err:
                raise InvalidRankError('Ranks must be integers') from err

        elif ranks.dtype.kind not in 'ui' and ranks.size:
            raise InvalidRankError(f'Ranks must be integers, got {ranks.dtype}')

        # compare before casting, so that nothing wraps around
        if ranks.size and (ranks.min() < 0 or ranks.max() >= len(self)):
            raise InvalidRankError(f'Ranks must lie in [0, {len(self)})')

        return self.tuples[ranks.astype(np.intp)]
