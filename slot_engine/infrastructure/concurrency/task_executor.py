# slot_engine/infrastructure/concurrency/task_executor.py
import logging
from enum import Enum, auto
from typing import List, Callable, TypeVar, Optional

from slot_engine.infrastructure.concurrency.process_pool import ProcessPool
from slot_engine.infrastructure.concurrency.thread_pool import ThreadPool

T = TypeVar("T")


class ExecutionMode(Enum):
    SEQUENTIAL = auto()
    MULTITHREAD = auto()
    MULTIPROCESS = auto()

    @classmethod
    def from_name(cls, name: str) -> "ExecutionMode":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown execution mode: {name} (expected one of {[m.name.lower() for m in cls]})"
            ) from None


class TaskExecutor:
    """
    Runs independent tasks sequentially, on threads or on processes.

    Results from the pools come back in completion order; callers must only
    combine them with order-independent operations.
    """
    def __init__(self, mode: ExecutionMode = ExecutionMode.SEQUENTIAL, max_workers: Optional[int] = None):
        self.mode = mode
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.task_executor")

        if self.mode == ExecutionMode.MULTITHREAD:
            self.pool = ThreadPool(max_workers)
        elif self.mode == ExecutionMode.MULTIPROCESS:
            self.pool = ProcessPool(max_workers)
        else:
            self.pool = None

    def execute(self, tasks: List[Callable[[], T]]) -> List[T]:
        task_count = len(tasks)
        self.logger.info(f"Executing {task_count} tasks in {self.mode.name} mode")

        if self.mode == ExecutionMode.SEQUENTIAL:
            return [task() for task in tasks]
        else:
            return self.pool.execute_tasks(tasks)
