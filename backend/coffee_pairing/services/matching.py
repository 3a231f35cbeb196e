"""
Seeded shuffle and greedy matching.

Everything here is pure: the same seed, input order and exclusion state
always give the same pairs.
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Collection, Sequence

logger = logging.getLogger(__name__)

PairPredicate = Callable[[int, int], bool]


@dataclass
class MatchOutcome:
    pairs: list[tuple[int, int]] = field(default_factory=list)
    unpaired: list[int] = field(default_factory=list)


def seeded_shuffle(user_ids: Sequence[int], seed: int) -> list[int]:
    rng = random.Random(seed)
    shuffled = list(user_ids)
    rng.shuffle(shuffled)
    return shuffled


def order_candidates(
    user_ids: Sequence[int],
    seed: int,
    guaranteed: Collection[int] = (),
) -> list[int]:
    """Seeded shuffle, then move guaranteed users to the front keeping relative order."""
    shuffled = seeded_shuffle(user_ids, seed)
    if not guaranteed:
        return shuffled
    priority = [user_id for user_id in shuffled if user_id in guaranteed]
    rest = [user_id for user_id in shuffled if user_id not in guaranteed]
    return priority + rest


def greedy_match(ordered: Sequence[int], can_pair: PairPredicate) -> MatchOutcome:
    """
    Pair each user with the first later user it may be paired with.

    A user with no legal partner left in the pool stays unpaired.
    """
    pool = list(ordered)
    outcome = MatchOutcome()

    while pool:
        user_id = pool.pop(0)
        partner_index = next(
            (index for index, candidate in enumerate(pool) if can_pair(user_id, candidate)),
            None,
        )
        if partner_index is None:
            outcome.unpaired.append(user_id)
            continue
        outcome.pairs.append((user_id, pool.pop(partner_index)))

    return outcome


def _split_pairs_for_leftovers(outcome: MatchOutcome, can_pair: PairPredicate) -> bool:
    """
    Turn pair (a, b) plus leftovers u, v into (u, a) and (v, b) when legal.
    Returns True when a swap was made.
    """
    for i, u in enumerate(outcome.unpaired):
        for v in outcome.unpaired[i + 1:]:
            for index, (a, b) in enumerate(outcome.pairs):
                for first, second in ((a, b), (b, a)):
                    if can_pair(u, first) and can_pair(v, second):
                        outcome.pairs[index] = (u, first)
                        outcome.pairs.append((v, second))
                        outcome.unpaired.remove(u)
                        outcome.unpaired.remove(v)
                        return True
    return False


def _place_guaranteed_leftovers(
    outcome: MatchOutcome,
    can_pair: PairPredicate,
    guaranteed: Collection[int],
) -> None:
    """A leftover guaranteed user takes the place of a non-guaranteed paired user."""
    for user_id in [u for u in outcome.unpaired if u in guaranteed]:
        for index, (a, b) in enumerate(outcome.pairs):
            for keep, displaced in ((a, b), (b, a)):
                if displaced in guaranteed or not can_pair(user_id, keep):
                    continue
                outcome.pairs[index] = (user_id, keep)
                outcome.unpaired[outcome.unpaired.index(user_id)] = displaced
                break
            else:
                continue
            break


def rescue_leftovers(
    outcome: MatchOutcome,
    can_pair: PairPredicate,
    guaranteed: Collection[int] = (),
) -> MatchOutcome:
    """Improve a greedy outcome without creating illegal pairs or losing any pair."""
    while len(outcome.unpaired) >= 2 and _split_pairs_for_leftovers(outcome, can_pair):
        pass
    if guaranteed:
        _place_guaranteed_leftovers(outcome, can_pair, guaranteed)
    return outcome


def match_users(
    user_ids: Sequence[int],
    can_pair: PairPredicate,
    seed: int,
    guaranteed: Collection[int] = (),
) -> MatchOutcome:
    """Shuffle with the seed, match greedily, then try to place anyone left over."""
    ordered = order_candidates(user_ids, seed, guaranteed)
    outcome = greedy_match(ordered, can_pair)
    outcome = rescue_leftovers(outcome, can_pair, guaranteed)

    for user_id in outcome.unpaired:
        logger.debug(f"User {user_id} could not be paired")

    return outcome
