# slot_engine/infrastructure/concurrency/thread_pool.py
import concurrent.futures
import logging
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")


class ThreadPool:
    """
    Thread-backed pool. Spins are CPU-bound, so this mainly helps when the
    RNG strategy releases the GIL (NumPy batches) or for I/O-heavy callers.
    """
    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.thread_pool")

    def execute_tasks(self, tasks: List[Callable[[], T]]) -> List[T]:
        self.logger.info(f"Executing {len(tasks)} tasks with {self.max_workers} workers")
        results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(task) for task in tasks]
            for future in concurrent.futures.as_completed(futures):
                results.append(future.result())
        return results
