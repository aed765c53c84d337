"""
Indexed append-only Merkle tree for role commitments.
Uses SHA-256 with domain separation for leaf/node hashing.

Leaves are written strictly at the frontier (next unused index) and never
overwritten, so the tree is an append-only commitment log with O(depth)
membership paths.
"""

import hashlib
import logging
from typing import Dict, List, Optional, Tuple

from .config import DEFAULT_TREE_DEPTH, MAX_TREE_DEPTH, MIN_TREE_DEPTH
from .exceptions import InvalidIndex, SlotAlreadyOccupied
from .security import ZERO_BYTES32, constant_time_compare, domain, require_bytes32
from .types import MerkleTreePath

logger = logging.getLogger(__name__)

MERKLE_LEAF_DOMAIN = domain("merkle_leaf")
MERKLE_NODE_DOMAIN = domain("merkle_node")


def hash_leaf(leaf_data: bytes) -> bytes:
    """
    Hash a Merkle tree leaf with domain separation.

    Args:
        leaf_data: Leaf content (a 32-byte commitment)

    Returns:
        32-byte SHA-256 hash
    """
    return hashlib.sha256(MERKLE_LEAF_DOMAIN + leaf_data).digest()


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Hash two Merkle node hashes.

    Note:
        Uses fixed left||right ordering (no sorting).
        Domain separation applied.
    """
    return hashlib.sha256(MERKLE_NODE_DOMAIN + left + right).digest()


def compute_root(leaf: bytes, siblings: List[Tuple[bytes, bool]]) -> bytes:
    """Fold an authentication path up to the root it implies."""
    current = hash_leaf(leaf)

    for sibling, is_left in siblings:
        if is_left:
            # Sibling is on left, current on right
            current = hash_node(sibling, current)
        else:
            # Sibling is on right, current on left
            current = hash_node(current, sibling)

    return current


def verify_path(path: MerkleTreePath, root: bytes) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        path: Authentication path (leaf + siblings)
        root: Expected root hash (32 bytes)

    Returns:
        True if path is valid, False otherwise
    """
    return constant_time_compare(compute_root(path.leaf, path.as_list()), root)


def _zero_hashes(depth: int) -> List[bytes]:
    # zeros[level] = hash of an empty subtree whose root sits at `level`
    zeros = [hash_leaf(ZERO_BYTES32)]
    for _ in range(depth):
        zeros.append(hash_node(zeros[-1], zeros[-1]))
    return zeros


class IndexedAppendTree:
    """
    Sparse fixed-depth Merkle tree written left to right.

    Example:
        >>> tree = IndexedAppendTree(depth=4)
        >>> tree.insert(0, commitment)
        True
        >>> path = tree.path_for_leaf(0, commitment)
        >>> tree.verify(path)
        True
    """

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH):
        if not MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH:
            raise ValueError(
                f"depth must be in [{MIN_TREE_DEPTH}, {MAX_TREE_DEPTH}], got {depth}"
            )
        self._depth = depth
        self._zeros = _zero_hashes(depth)
        self._leaves: List[bytes] = []
        self._first_index: Dict[bytes, int] = {}
        # (level, position) -> node hash, only for non-empty subtrees
        self._nodes: Dict[Tuple[int, int], bytes] = {}

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        return 1 << self._depth

    @property
    def frontier(self) -> int:
        """Next unused index."""
        return len(self._leaves)

    def __len__(self) -> int:
        return len(self._leaves)

    def _node(self, level: int, position: int) -> bytes:
        return self._nodes.get((level, position), self._zeros[level])

    def root(self) -> bytes:
        return self._node(self._depth, 0)

    def leaf_at(self, index: int) -> bytes:
        if not 0 <= index < self.frontier:
            raise InvalidIndex(f"invalid index into sparse merkle tree: {index}")
        return self._leaves[index]

    def leaves(self) -> List[bytes]:
        return list(self._leaves)

    def insert(self, index: int, leaf: bytes) -> bool:
        """
        Write ``leaf`` at ``index``.

        Args:
            index: Must equal the frontier for a new write
            leaf: 32-byte commitment

        Returns:
            True if the leaf was written, False if the same leaf already
            sits at ``index``

        Raises:
            SlotAlreadyOccupied: index < frontier holding a different leaf
            InvalidIndex: index beyond the frontier or capacity
        """
        leaf = require_bytes32(leaf, "leaf")
        if index < 0:
            raise InvalidIndex(f"invalid index into sparse merkle tree: {index}")

        if index < self.frontier:
            if constant_time_compare(self._leaves[index], leaf):
                return False
            raise SlotAlreadyOccupied(f"slot {index} already holds another leaf")

        if index >= self.capacity:
            raise InvalidIndex(f"merkle tree is full (capacity {self.capacity})")
        if index > self.frontier:
            raise InvalidIndex(
                f"insert must target frontier {self.frontier}, got {index}"
            )

        self._leaves.append(leaf)
        self._first_index.setdefault(leaf, index)

        # Recompute the nodes on the path to the root
        current = hash_leaf(leaf)
        position = index
        self._nodes[(0, position)] = current
        for level in range(self._depth):
            sibling_position = position ^ 1
            sibling = self._node(level, sibling_position)
            if position & 1:
                current = hash_node(sibling, current)
            else:
                current = hash_node(current, sibling)
            position >>= 1
            self._nodes[(level + 1, position)] = current

        logger.debug("tree leaf written at index %d (frontier %d)", index, self.frontier)
        return True

    def path_for_leaf(self, index: int, leaf: bytes) -> MerkleTreePath:
        """
        Authentication path for ``leaf`` at ``index``.

        The path carries the given leaf, so it only verifies against the
        root if that leaf actually sits at ``index``.

        Raises:
            InvalidIndex: If index is not below the frontier
        """
        if not 0 <= index < self.frontier:
            raise InvalidIndex(f"invalid index into sparse merkle tree: {index}")

        siblings = []
        position = index
        for level in range(self._depth):
            sibling_position = position ^ 1
            # For a right child the sibling is on the left
            siblings.append((self._node(level, sibling_position), bool(position & 1)))
            position >>= 1

        return MerkleTreePath(leaf=leaf, siblings=tuple(siblings))

    def find_path_for_leaf(self, leaf: bytes) -> Optional[MerkleTreePath]:
        """Path for the first index holding ``leaf``, or None."""
        index = self._first_index.get(bytes(leaf))
        if index is None:
            return None
        return self.path_for_leaf(index, leaf)

    def verify(self, path: MerkleTreePath) -> bool:
        """Check a path against the live root."""
        if path.depth != self._depth:
            return False
        return verify_path(path, self.root())

    def contains(self, index: int, leaf: bytes) -> bool:
        """True if ``leaf`` is stored at ``index``."""
        if not 0 <= index < self.frontier:
            return False
        return constant_time_compare(self._leaves[index], leaf)

    def copy(self) -> "IndexedAppendTree":
        clone = IndexedAppendTree.__new__(IndexedAppendTree)
        clone._depth = self._depth
        clone._zeros = self._zeros
        clone._leaves = list(self._leaves)
        clone._first_index = dict(self._first_index)
        clone._nodes = dict(self._nodes)
        return clone

    @classmethod
    def from_leaves(
        cls, leaves: List[bytes], depth: int = DEFAULT_TREE_DEPTH
    ) -> "IndexedAppendTree":
        tree = cls(depth)
        for index, leaf in enumerate(leaves):
            tree.insert(index, leaf)
        return tree
