"""Thread helpers: a work-stealing parallel loop and an ordered pipeline."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional


class _ForWorker:
    __slots__ = ("i",)

    def __init__(self, i: int) -> None:
        self.i = i


def parallel_for(n_threads: int, func: Callable[[int, int], Any], n: int) -> None:
    """Call ``func(i, thread_id)`` for every i in range(n) across threads.

    Each thread starts with an interleaved share of the indices and then
    steals from the thread that has made the least progress.
    """
    n_threads = max(1, n_threads)
    workers = [_ForWorker(i) for i in range(n_threads)]
    lock = threading.Lock()
    errors: list[BaseException] = []

    def fetch_add(w: _ForWorker) -> int:
        with lock:
            k = w.i
            w.i += n_threads
            return k

    def steal() -> int:
        with lock:
            victim = min(workers, key=lambda w: w.i)
            k = victim.i
            victim.i += n_threads
        return -1 if k >= n else k

    def run(tid: int) -> None:
        me = workers[tid]
        try:
            while True:
                i = fetch_add(me)
                if i >= n:
                    break
                func(i, tid)
            while (i := steal()) >= 0:
                func(i, tid)
        except BaseException as exc:  # re-raised in the caller
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=run, args=(tid,)) for tid in range(n_threads)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    if errors:
        raise errors[0]


class _PipeWorker:
    __slots__ = ("index", "step", "data")

    def __init__(self, index: int) -> None:
        self.index = index
        self.step = 0
        self.data: Any = None


def pipeline(
    n_threads: int,
    func: Callable[[Any, int, Optional[Any]], Optional[Any]],
    shared: Any,
    n_steps: int,
) -> None:
    """Run ``func(shared, step, data)`` as an ordered multi-step pipeline.

    Step 0 receives None and produces a batch; each later step receives the
    previous step's result. A step of a batch only starts after every
    earlier batch has finished that step. A None result from any step but
    the last ends the worker.
    """
    n_threads = max(1, n_threads)
    cv = threading.Condition()
    workers = [_PipeWorker(i) for i in range(n_threads)]
    next_index = n_threads
    errors: list[BaseException] = []

    def blocked(w: _PipeWorker) -> bool:
        return any(
            other is not w and other.step <= w.step and other.index < w.index
            for other in workers
        )

    def run(w: _PipeWorker) -> None:
        nonlocal next_index
        while w.step < n_steps:
            with cv:
                while blocked(w):
                    cv.wait()
            try:
                w.data = func(shared, w.step, w.data if w.step else None)
            except BaseException as exc:  # re-raised in the caller
                with cv:
                    errors.append(exc)
                    w.step = n_steps
                    cv.notify_all()
                return
            with cv:
                if w.step == n_steps - 1 or w.data is not None:
                    w.step = (w.step + 1) % n_steps
                else:
                    w.step = n_steps
                if w.step == 0:
                    w.index = next_index
                    next_index += 1
                cv.notify_all()

    threads = [threading.Thread(target=run, args=(w,)) for w in workers]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    if errors:
        raise errors[0]