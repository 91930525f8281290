## combinadic_config.py

import os

import numpy as np
from structlog import get_logger

from combinadic_errors import InvalidInputError

logger = get_logger()

# --- INTEGER WIDTH ---
# None means arbitrary precision (plain Python int).
# Otherwise a numpy integer dtype, e.g. np.uint32 or 'uint64'.
CONFIG = {
    'WIDTH': None,
}

# Sentinel for "use CONFIG['WIDTH']"
DEFAULT = object()


def resolve_width(width=DEFAULT):
    """
    Normalize a width to a numpy dtype.

    :param width: None, a numpy integer dtype (or its name), or DEFAULT
    :return: np.dtype or None for arbitrary precision
    """
    if width is DEFAULT:
        width = CONFIG['WIDTH']

    if width is None:
        return None

    try:
        dtype = np.dtype(width)
    except TypeError as err:
        raise InvalidInputError(f'Unsupported integer width: {width!r}') from err

    if dtype.kind not in 'ui':
        raise InvalidInputError(f'Integer width must be an integer dtype, got {dtype}')

    return dtype


def width_limit(width=DEFAULT):
    """
    The largest value representable in the width, or None for arbitrary precision.
    """
    dtype = resolve_width(width)

    if dtype is None:
        return None

    return int(np.iinfo(dtype).max)


def width_from_env(value):
    """
    Parse the COMBINADIC_WIDTH environment value.
    """
    value = value.strip()

    if not value or value.lower() == 'none':
        return None

    return resolve_width(value)


_env_width = os.getenv('COMBINADIC_WIDTH')

if _env_width is not None:
    CONFIG['WIDTH'] = width_from_env(_env_width)
    logger.debug('width configured from environment', width=str(CONFIG['WIDTH']))
