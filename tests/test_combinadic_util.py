from itertools import combinations

import numpy as np
import pytest
from scipy.special import comb
from structlog.testing import capture_logs

from combinadic_errors import (
    CombinadicOverflowError,
    DimensionMismatchError,
    InvalidInputError,
    InvalidRankError,
)
from combinadic_util import binomial, checked_factorial, decode, encode, falling_factorial

EXAMPLES = [
    ([0, 4, 6], 26),
    ([0, 1, 2, 3, 4, 5, 7, 9], 10),
    ([0, 1], 0),
    ([0, 2], 1),
    ([1, 2], 2),
    ([0, 3], 3),
]


@pytest.mark.parametrize('ntuple, rank', EXAMPLES)
def test_encode_examples(ntuple, rank):
    assert encode(ntuple) == rank


@pytest.mark.parametrize('ntuple, rank', EXAMPLES)
def test_decode_examples(ntuple, rank):
    assert decode(rank, len(ntuple)) == ntuple


def test_dimension_one_is_identity():
    for x in range(50):
        assert encode([x]) == x
        assert decode(x, 1) == [x]


@pytest.mark.parametrize('k', [1, 2, 3, 4, 5])
def test_decode_then_encode(k):
    for rank in range(comb(12, k, exact=True)):
        ntuple = decode(rank, k)

        assert len(ntuple) == k
        assert all(a < b for a, b in zip(ntuple, ntuple[1:]))
        assert encode(ntuple) == rank


@pytest.mark.parametrize('k', [1, 2, 3, 4])
def test_encode_then_decode(k):
    for ntuple in combinations(range(14), k):
        assert decode(encode(ntuple), k) == list(ntuple)


@pytest.mark.parametrize('k', [1, 2, 3, 4])
def test_minimal_perfect_hash(k):
    max_element = 10

    # largest element first, then the next largest one, ...
    ordered = sorted(combinations(range(max_element + 1), k), key=lambda t: t[::-1])

    assert [encode(t) for t in ordered] == list(range(comb(max_element + 1, k, exact=True)))


def test_monotonicity():
    ntuple = [1, 3, 4, 8]
    base = encode(ntuple)

    for i in range(len(ntuple)):
        upper = ntuple[i + 1] if i + 1 < len(ntuple) else ntuple[i] + 5

        for x in range(ntuple[i] + 1, upper):
            bigger = list(ntuple)
            bigger[i] = x
            assert encode(bigger) > base


def test_arbitrary_precision():
    ntuple = [10 ** 20, 10 ** 20 + 7, 10 ** 30]
    rank = encode(ntuple)

    assert rank == 10 ** 20 + comb(10 ** 20 + 7, 2, exact=True) + comb(10 ** 30, 3, exact=True)
    assert decode(rank, 3) == ntuple


def test_numpy_integers_accepted():
    assert encode(np.array([0, 4, 6])) == 26
    assert decode(np.int64(26), np.int32(3)) == [0, 4, 6]


def test_helpers_agree_with_scipy():
    for x in range(25):
        for n in range(1, 8):
            assert binomial(x, n) == comb(x, n, exact=True)

    assert falling_factorial(7, 3) == 7 * 6 * 5
    assert falling_factorial(2, 3) == 0
    assert checked_factorial(0) == 1
    assert checked_factorial(6) == 720


def test_helpers_check_the_limit():
    with pytest.raises(CombinadicOverflowError):
        falling_factorial(10, 3, limit=255)

    with pytest.raises(CombinadicOverflowError):
        checked_factorial(6, limit=255)

    # 10 * 9 * 8 does not fit even though C(10, 3) = 120 does
    with pytest.raises(CombinadicOverflowError):
        binomial(10, 3, limit=255)

    assert binomial(6, 3, limit=255) == 20


def test_not_strictly_increasing():
    with pytest.raises(InvalidInputError):
        encode([3, 1])

    with pytest.raises(InvalidInputError):
        encode([1, 1])


@pytest.mark.parametrize('ntuple', [[-1, 2], ['a', 'b'], [0.5, 2], 5])
def test_invalid_elements(ntuple):
    with pytest.raises(InvalidInputError):
        encode(ntuple)


def test_empty_tuple():
    with pytest.raises(DimensionMismatchError):
        encode([])

    # still an invalid input
    with pytest.raises(InvalidInputError):
        encode([])


@pytest.mark.parametrize('k', [0, -2, 1.5, None])
def test_invalid_dimension(k):
    with pytest.raises(DimensionMismatchError):
        decode(5, k)


@pytest.mark.parametrize('rank', [-1, 2.5, '3'])
def test_invalid_rank(rank):
    with pytest.raises(InvalidRankError):
        decode(rank, 2)


def test_decode_overflow():
    with pytest.raises(CombinadicOverflowError) as excinfo:
        decode(999999, 2, width=np.uint8)

    assert excinfo.value.limit == 255
    assert excinfo.value.value == 999999

    # also an OverflowError
    with pytest.raises(OverflowError):
        decode(999999, 2, width='uint16')

    assert decode(999999, 2, width=np.uint64) == [1008, 1414]


def test_encode_overflow():
    ntuple = [0, 1, 2, 3, 4, 5, 7, 9]

    # 9 * 8 * ... * 2 does not fit into 16 bits
    with pytest.raises(CombinadicOverflowError):
        encode(ntuple, width=np.uint16)

    assert encode(ntuple, width=np.uint32) == 10
    assert encode([0, 4, 6], width=np.uint8) == 26


def test_encode_and_decode_overflow_alike():
    ntuple = [0, 1, 2, 3, 4, 5, 7, 9]

    with pytest.raises(CombinadicOverflowError):
        decode(10, 8, width=np.uint16)

    assert decode(10, 8, width=np.uint32) == ntuple

    for ntuple in combinations(range(20), 2):
        try:
            rank = encode(ntuple, width=np.uint8)
        except CombinadicOverflowError:
            continue

        assert decode(rank, 2, width=np.uint8) == list(ntuple)


def test_caught_overflow_is_silent(capsys):
    with capture_logs() as log_list:
        with pytest.raises(CombinadicOverflowError):
            encode([0, 300], width=np.uint8)

        with pytest.raises(CombinadicOverflowError):
            decode(999999, 2, width=np.uint8)

    assert log_list == []
    assert capsys.readouterr().out == ''


def test_encode_uses_binomial_with_carried_factorial():
    ntuple = [2, 5, 9, 11, 20]

    assert encode(ntuple) == sum(binomial(x, i + 1) for i, x in enumerate(ntuple))
    assert binomial(9, 3, factorial=6) == binomial(9, 3) == 84

    # a known factorial is not checked again, the falling factorial still is
    assert binomial(6, 3, limit=255, factorial=6) == 20

    with pytest.raises(CombinadicOverflowError):
        binomial(10, 3, limit=255, factorial=6)
