# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Helpers for composing messages"""
from typing import Iterable


def enumeration(items: Iterable[object], link: str = 'and'):
    "['a', 'b', 'c'] -> 'a, b and c'"
    items = list(map(str, items))
    if len(items) >= 2:
        return f"{', '.join(items[:-1])} {link} {items[-1]}"
    elif len(items) == 1:
        return items[0]
    else:
        raise ValueError(f"items={items!r}")


def plural(singular, n):
    "plural('cluster', 2) -> 'clusters'"
    if n == 1:
        return singular
    elif singular[-1] == 'y' and singular[-2] != 'e':
        return singular[:-1] + 'ies'
    else:
        return singular + 's'


def n_of(n, singular):
    "n_of(3, 'subject') -> '3 subjects'"
    return f"{n} {plural(singular, n)}"
