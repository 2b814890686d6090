"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/setalgebra.py
Union, intersection and difference between two indexes, written into a new index.

Each operation is a single pass over a hash-ordered cursor with point lookups
into the other source. Sources are only read; the target must not exist yet.
"""

from typing import Callable, Dict
import logging

from dedupset.core.errors import IndexNotFoundError, TargetAlreadyExistsError
from dedupset.core.models import SetOperation
from dedupset.core.store import Namespace, Transaction

logger = logging.getLogger(__name__)


def _prepare(tx: Transaction, target: str, index_a: str, index_b: str):
    """
    Checks preconditions inside the caller's write transaction, then creates the target.
    Nothing is written if a precondition fails.
    """
    if not target:
        raise ValueError("Target index name cannot be empty")
    if not index_a:
        raise ValueError("Index A name cannot be empty")
    if not index_b:
        raise ValueError("Index B name cannot be empty")
    tx.check_writable()

    if tx.exists(target):
        raise TargetAlreadyExistsError(target)
    for name in (index_a, index_b):
        if not tx.exists(name):
            raise IndexNotFoundError(name)

    source_a = tx.namespace(index_a)
    source_b = tx.namespace(index_b)
    target_ns = tx.namespace(target)
    return target_ns, source_a, source_b


def merge_into(first: Namespace, second: Namespace, target: Namespace) -> int:
    """
    Writes first ∪ second into target; entries present in both are merged.
    Returns the number of entries written.
    """
    count = 0
    for digest, entry in first.items():
        other = second.get(digest)
        if other is not None:
            entry.merge(other)
        target.put(digest, entry)
        count += 1

    for digest, value in second.raw_items():
        if digest in first:
            continue
        target.put_raw(digest, value)
        count += 1
    return count


def intersect_into(first: Namespace, second: Namespace, target: Namespace) -> int:
    """Writes merged entries for hashes present in both first and second."""
    count = 0
    for digest, entry in first.items():
        other = second.get(digest)
        if other is None:
            continue
        entry.merge(other)
        target.put(digest, entry)
        count += 1
    return count


def subtract_into(first: Namespace, second: Namespace, target: Namespace) -> int:
    """Copies first's entries whose hash is absent from second, byte for byte."""
    count = 0
    for digest, value in first.raw_items():
        if digest in second:
            continue
        target.put_raw(digest, value)
        count += 1
    return count


_WRITERS: Dict[SetOperation, Callable[[Namespace, Namespace, Namespace], int]] = {
    SetOperation.UNION: merge_into,
    SetOperation.INTERSECTION: intersect_into,
    SetOperation.DIFFERENCE: subtract_into,
}


def apply(tx: Transaction, operation: SetOperation, target: str, index_a: str, index_b: str) -> int:
    """
    Computes `target = index_a <operation> index_b` inside a write transaction.

    Raises:
        ValueError: if any name is empty
        TargetAlreadyExistsError: if `target` already exists
        IndexNotFoundError: if a source index does not exist
    """
    target_ns, source_a, source_b = _prepare(tx, target, index_a, index_b)
    count = _WRITERS[operation](source_a, source_b, target_ns)
    logger.info(
        f"Set {operation.value} completed: {target} = {index_a} {operation.symbol} {index_b} "
        f"({count} entries)"
    )
    return count


def union(tx: Transaction, target: str, index_a: str, index_b: str) -> int:
    return apply(tx, SetOperation.UNION, target, index_a, index_b)


def intersection(tx: Transaction, target: str, index_a: str, index_b: str) -> int:
    return apply(tx, SetOperation.INTERSECTION, target, index_a, index_b)


def difference(tx: Transaction, target: str, index_a: str, index_b: str) -> int:
    return apply(tx, SetOperation.DIFFERENCE, target, index_a, index_b)
