"""
Sampling block definitions for the coordinate particle filter.
"""

from typing import List


def create_sampling_blocks(blocks: int, block_size: int) -> List[List[int]]:
    """
    Split the index range [0, blocks * block_size) into contiguous blocks.

    Block i holds indices [i * block_size, (i + 1) * block_size). The filter
    updates one block (one object or object part) per coordinate step.

    Args:
        blocks (int): Number of objects or object parts
        block_size (int): State dimension of each part

    Returns:
        list: ``blocks`` lists of ``block_size`` ascending indices
    """
    if blocks < 1 or block_size < 1:
        raise ValueError(
            f"blocks and block_size must be positive (got {blocks}, {block_size})"
        )
    return [
        list(range(i * block_size, (i + 1) * block_size)) for i in range(blocks)
    ]
