from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def parallel_map_ordered(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: int,
    *,
    on_done: Optional[Callable[[T, R], None]] = None,
) -> List[R]:
    """
    Execute func over items and return results in input order.

    With max_workers <= 1 everything runs sequentially in the calling thread.
    Otherwise a thread pool with a sliding window of futures is used. The first
    worker exception cancels pending work and is re-raised.

    on_done(item, result) is called from the calling thread as each item
    finishes, in completion order.
    """
    if max_workers <= 1:
        results: List[R] = []
        for item in items:
            result = func(item)
            if on_done is not None:
                on_done(item, result)
            results.append(result)
        return results

    ordered: List[R] = []
    iterator = iter(items)
    inflight: Dict[Future[R], int] = {}
    submitted_items: Dict[int, T] = {}
    pending: Dict[int, R] = {}
    next_index = 0
    submitted = 0

    def _submit_next() -> bool:
        nonlocal submitted
        try:
            item = next(iterator)
        except StopIteration:
            return False
        submitted_items[submitted] = item
        inflight[executor.submit(func, item)] = submitted
        submitted += 1
        return True

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for _ in range(max_workers):
            if not _submit_next():
                break

        while inflight:
            done, _ = wait(inflight.keys(), return_when=FIRST_COMPLETED)
            for fut in done:
                idx = inflight.pop(fut)
                try:
                    pending[idx] = fut.result()
                except BaseException:
                    for pending_fut in inflight:
                        pending_fut.cancel()
                    raise
                if on_done is not None:
                    on_done(submitted_items[idx], pending[idx])
            for _ in range(len(done)):
                if not _submit_next():
                    break
            while next_index in pending:
                ordered.append(pending.pop(next_index))
                submitted_items.pop(next_index, None)
                next_index += 1

    return ordered
