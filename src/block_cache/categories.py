"""Block types and the categories cache admission decisions are keyed on."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

MAGIC_LENGTH = 8


class BlockCategory(Enum):
    """Coarse role of a block within a stored file."""

    DATA = "data"
    INDEX = "index"
    BLOOM = "bloom"
    META = "meta"
    UNKNOWN = "unknown"

    @property
    def is_structural(self) -> bool:
        """Return whether the block is a lookup aid that is always cacheable.

        Returns
        -------
        bool
            True for index and bloom blocks.
        """
        return self in STRUCTURAL_CATEGORIES

    @property
    def is_prefetchable(self) -> bool:
        """Return whether prefetch-on-open may pull this category into cache.

        Returns
        -------
        bool
            False for file metadata and unclassified blocks.
        """
        return self not in PREFETCH_EXCLUDED_CATEGORIES


STRUCTURAL_CATEGORIES: frozenset[BlockCategory] = frozenset(
    {BlockCategory.INDEX, BlockCategory.BLOOM}
)
PREFETCH_EXCLUDED_CATEGORIES: frozenset[BlockCategory] = frozenset(
    {BlockCategory.META, BlockCategory.UNKNOWN}
)


class BlockType(Enum):
    """Physical block kind, keyed by the block's on-disk magic record."""

    # Scanned blocks
    DATA = b"DATABLK*"
    ENCODED_DATA = b"DATABLKE"
    LEAF_INDEX = b"IDXLEAF2"
    BLOOM_CHUNK = b"BLMFBLK2"

    # Non-scanned blocks
    META = b"METABLKc"
    INTERMEDIATE_INDEX = b"IDXINTE2"

    # Load-on-open blocks
    ROOT_INDEX = b"IDXROOT2"
    FILE_INFO = b"FILEINF2"
    GENERAL_BLOOM_META = b"BLMFMET2"
    DELETE_FAMILY_BLOOM_META = b"DFBLMET2"

    # Trailer
    TRAILER = b'TRABLK"$'

    # Legacy single-level index
    INDEX_V1 = b"IDXBLK)+"

    @property
    def magic(self) -> bytes:
        """Return the 8-byte magic record written ahead of the block.

        Returns
        -------
        bytes
            Magic record bytes.
        """
        return self.value

    @property
    def category(self) -> BlockCategory:
        """Return the category this block type belongs to.

        Returns
        -------
        BlockCategory
            Category used by cache admission decisions.
        """
        return BLOCK_TYPE_CATEGORIES[self]

    @property
    def is_data(self) -> bool:
        """Return whether the block carries bulk payload.

        Returns
        -------
        bool
            True for plain and encoded data blocks.
        """
        return self.category is BlockCategory.DATA


BLOCK_TYPE_CATEGORIES: Mapping[BlockType, BlockCategory] = MappingProxyType(
    {
        BlockType.DATA: BlockCategory.DATA,
        BlockType.ENCODED_DATA: BlockCategory.DATA,
        BlockType.LEAF_INDEX: BlockCategory.INDEX,
        BlockType.BLOOM_CHUNK: BlockCategory.BLOOM,
        BlockType.META: BlockCategory.META,
        BlockType.INTERMEDIATE_INDEX: BlockCategory.INDEX,
        BlockType.ROOT_INDEX: BlockCategory.INDEX,
        BlockType.FILE_INFO: BlockCategory.META,
        BlockType.GENERAL_BLOOM_META: BlockCategory.BLOOM,
        BlockType.DELETE_FAMILY_BLOOM_META: BlockCategory.BLOOM,
        BlockType.TRAILER: BlockCategory.META,
        BlockType.INDEX_V1: BlockCategory.INDEX,
    }
)


def category_of(block_type: BlockType | None) -> BlockCategory:
    """Return the category for a block type, UNKNOWN when the type is absent.

    Returns
    -------
    BlockCategory
        Category of the block type.
    """
    if block_type is None:
        return BlockCategory.UNKNOWN
    return block_type.category


def block_type_from_magic(magic: bytes | bytearray | memoryview) -> BlockType:
    """Parse a block magic record into its block type.

    Parameters
    ----------
    magic
        Leading bytes of a block; only the first eight are inspected.

    Returns
    -------
    BlockType
        Block type named by the magic record.

    Raises
    ------
    ValueError
        Raised when the buffer is short or the magic is not recognised.
    """
    record = bytes(magic[:MAGIC_LENGTH])
    if len(record) < MAGIC_LENGTH:
        msg = f"Block magic must be {MAGIC_LENGTH} bytes, got {len(record)}: {record!r}."
        raise ValueError(msg)
    try:
        return BlockType(record)
    except ValueError as exc:
        msg = f"Invalid block magic: {record!r}."
        raise ValueError(msg) from exc


__all__ = [
    "BLOCK_TYPE_CATEGORIES",
    "MAGIC_LENGTH",
    "PREFETCH_EXCLUDED_CATEGORIES",
    "STRUCTURAL_CATEGORIES",
    "BlockCategory",
    "BlockType",
    "block_type_from_magic",
    "category_of",
]
