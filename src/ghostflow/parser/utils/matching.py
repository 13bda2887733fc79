"""Closest-log-index matching of anchor events to underlying transfers."""

from collections.abc import Callable, Collection
from typing import Literal

from ghostflow.parser.utils.types import TokenTransfer

Direction = Literal["before", "after", "any"]


def find_closest_transfer(
    transfers: list[TokenTransfer],
    anchor_log_index: int,
    direction: Direction,
    predicate: Callable[[TokenTransfer], bool],
    exclude: Collection[int] = (),
) -> int | None:
    """Return the index of the matching transfer nearest to the anchor, or None.

    "before" admits transfers at or before the anchor, "after" at or after it.
    Distance ties resolve to the lowest list index.
    """
    best_idx: int | None = None
    best_dist: int | None = None

    for idx, transfer in enumerate(transfers):
        if idx in exclude:
            continue
        if direction == "before" and transfer.log_index > anchor_log_index:
            continue
        if direction == "after" and transfer.log_index < anchor_log_index:
            continue
        if not predicate(transfer):
            continue

        dist = abs(transfer.log_index - anchor_log_index)
        if best_dist is None or dist < best_dist:
            best_idx = idx
            best_dist = dist

    return best_idx


def find_closest_pair(
    transfers: list[TokenTransfer],
    anchor_log_index: int,
    direction: Direction,
    predicate: Callable[[TokenTransfer], bool],
    exclude: Collection[int] = (),
) -> tuple[int | None, int | None]:
    """Find up to two matches of distinct tokens (a pool's two sides).

    The second match is searched only when the first exists.
    """
    first = find_closest_transfer(transfers, anchor_log_index, direction, predicate, exclude)
    if first is None:
        return None, None

    first_token = transfers[first].token_address.lower()
    second = find_closest_transfer(
        transfers,
        anchor_log_index,
        direction,
        lambda t: predicate(t) and t.token_address.lower() != first_token,
        set(exclude) | {first},
    )
    return first, second
