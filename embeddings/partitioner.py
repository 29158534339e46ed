"""
Sequence partitioning for inputs longer than the model context.

A tokenized text carries one leading and one trailing boundary marker
([CLS] ... [SEP]). Partitions cover only the tokens between them; the
markers are added back when each partition is re-encoded for inference.
A partition never ends in the middle of a word: if the cut would land on a
subword continuation, the cut moves left until it lands on a word start.
"""

import logging
from typing import Callable, Iterator, List, Sequence

from shared.exceptions import EncodingError

logger = logging.getLogger(__name__)

# Model context is 512, minus the two boundary markers
MAX_SEQUENCE_LENGTH = 510

CONTINUATION_PREFIX = "##"


def is_subword_continuation(token: str) -> bool:
    """WordPiece marks tokens that continue the previous word with '##'."""
    return token.startswith(CONTINUATION_PREFIX)


def partition_tokens(
    tokens: Sequence[str],
    max_length: int = MAX_SEQUENCE_LENGTH,
    is_continuation: Callable[[str], bool] = is_subword_continuation,
) -> Iterator[List[str]]:
    """
    Split a marked token sequence into word-aligned partitions.

    Args:
        tokens: Tokens including the leading and trailing boundary markers
        max_length: Maximum tokens per partition
        is_continuation: Predicate for subword continuation tokens

    Yields:
        Lists of tokens, each no longer than max_length

    Raises:
        EncodingError: If a partition would be empty because every token in
            the window continues the previous word
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be greater than zero, but is: {max_length}")

    end = len(tokens) - 1
    start = 1
    while start < end:
        stop = start + max_length
        if stop >= end:
            stop = end
        else:
            while is_continuation(tokens[stop]):
                stop -= 1
                if stop <= start:
                    raise EncodingError(
                        f"Cannot partition tokens at index {start}: no word boundary "
                        f"within {max_length} tokens"
                    )
        yield list(tokens[start:stop])
        start = stop
