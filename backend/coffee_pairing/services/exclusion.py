"""
Exclusion rules deciding whether two users may be paired.
"""
from typing import Iterable, Mapping

# Pairs met within this many periods are not repeated
RECENT_PAIRING_WINDOW = 2


def canonical_pair(user_a: int, user_b: int) -> tuple[int, int]:
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


class BlockIndex:
    """Symmetric lookup over directed block edges."""

    def __init__(self, edges: Iterable[tuple[int, int]] = ()):
        self._pairs: set[tuple[int, int]] = set()
        for blocker_id, blocked_id in edges:
            self.add(blocker_id, blocked_id)

    def add(self, blocker_id: int, blocked_id: int) -> None:
        self._pairs.add(canonical_pair(blocker_id, blocked_id))

    def is_blocked(self, user_x: int, user_y: int) -> bool:
        return canonical_pair(user_x, user_y) in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)


def paired_recently(
    user_a: int,
    user_b: int,
    recent_map: Mapping[int, Mapping[int, int]],
    window: int = RECENT_PAIRING_WINDOW,
) -> bool:
    periods_ago = recent_map.get(user_a, {}).get(user_b)
    if periods_ago is None:
        periods_ago = recent_map.get(user_b, {}).get(user_a)
    return periods_ago is not None and periods_ago <= window


def can_pair(
    user_a: int,
    user_b: int,
    blocks: BlockIndex,
    recent_map: Mapping[int, Mapping[int, int]],
    total_eligible_count: int,
    window: int = RECENT_PAIRING_WINDOW,
    small_population: int = 2,
) -> bool:
    """
    Whether user_a and user_b may be paired in this run.

    Blocks always win. Recent partners are refused unless the eligible
    population is at most small_population, where a repeat beats leaving
    everyone unpaired.
    """
    if user_a == user_b:
        return False
    if blocks.is_blocked(user_a, user_b):
        return False
    if paired_recently(user_a, user_b, recent_map, window):
        return total_eligible_count <= small_population
    return True


class ExclusionIndex:
    """Block graph and recency map bound to one pairing run."""

    def __init__(
        self,
        blocks: BlockIndex,
        recent_map: Mapping[int, Mapping[int, int]],
        total_eligible_count: int,
        window: int = RECENT_PAIRING_WINDOW,
        small_population: int = 2,
    ):
        self.blocks = blocks
        self.recent_map = recent_map
        self.total_eligible_count = total_eligible_count
        self.window = window
        self.small_population = small_population

    @classmethod
    def build(
        cls,
        block_edges: Iterable[tuple[int, int]],
        recent_map: Mapping[int, Mapping[int, int]],
        total_eligible_count: int,
        window: int = RECENT_PAIRING_WINDOW,
        small_population: int = 2,
    ) -> "ExclusionIndex":
        return cls(BlockIndex(block_edges), recent_map, total_eligible_count, window, small_population)

    def can_pair(self, user_a: int, user_b: int) -> bool:
        return can_pair(
            user_a,
            user_b,
            self.blocks,
            self.recent_map,
            self.total_eligible_count,
            window=self.window,
            small_population=self.small_population,
        )
