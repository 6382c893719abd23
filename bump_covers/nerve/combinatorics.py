# bump_covers/nerve/combinatorics.py
from typing import Tuple

Edge = Tuple[int, int]
Tri = Tuple[int, int, int]


def canon_edge(a: int, b: int) -> Edge:
    a, b = int(a), int(b)
    if a == b:
        raise ValueError(f"An edge needs two distinct covering indices. Got ({a}, {b}).")
    return (a, b) if a < b else (b, a)


def canon_tri(a: int, b: int, c: int) -> Tri:
    t = tuple(sorted((int(a), int(b), int(c))))
    if len(set(t)) != 3:
        raise ValueError(f"A triangle needs three distinct covering indices. Got {t}.")
    return t
