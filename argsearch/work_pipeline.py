# argsearch/work_pipeline.py
import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Deque, Iterable, Optional

from argsearch.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BoundedWorkPipeline:
    """
    Пул потоков с ограниченной очередью задач (backpressure).

    submit() не дает числу незавершенных задач превысить capacity:
    пока очередь полна, производитель ждет самую старую задачу.
    Результаты отдаются в on_result строго в порядке подачи (FIFO),
    а не в порядке завершения. Ошибка задачи пробрасывается из точки ожидания.

    Использование:
        with BoundedWorkPipeline(4, 2.0, on_result=writer.write) as pipeline:
            for item in items:
                pipeline.submit(process, item)
            pipeline.join()
    """

    def __init__(self, num_workers: int, queue_factor: float = 2.0,
                 on_result: Optional[Callable[[Any], None]] = None, name: str = "worker"):
        if num_workers is None or num_workers < 1:
            raise ConfigurationError(f"num_workers must be positive, got {num_workers}")
        if queue_factor is None or queue_factor <= 0:
            raise ConfigurationError(f"queue_factor must be positive, got {queue_factor}")

        self.num_workers = num_workers
        self.capacity = max(1, int(queue_factor * num_workers))
        self.on_result = on_result

        self._executor = ThreadPoolExecutor(max_workers=num_workers, thread_name_prefix=name)
        self._in_flight: Deque[Future] = deque()
        self._closed = False
        self._failed = False

        # Счетчики для диагностики
        self.max_in_flight = 0
        self.completed = 0

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> None:
        if self._closed:
            raise RuntimeError("Cannot submit to a closed pipeline")

        # Backpressure: освобождаем место, дожидаясь самых старых задач
        while len(self._in_flight) >= self.capacity:
            self._drain_oldest()

        self._in_flight.append(self._executor.submit(fn, *args, **kwargs))
        self.max_in_flight = max(self.max_in_flight, len(self._in_flight))

    def _drain_oldest(self) -> Any:
        future = self._in_flight.popleft()
        try:
            result = future.result()
        except BaseException:
            self._failed = True
            raise

        self.completed += 1
        if self.on_result is not None:
            self.on_result(result)
        return result

    def join(self) -> None:
        """Дождаться всех оставшихся задач в порядке подачи."""
        while self._in_flight:
            self._drain_oldest()

    def run(self, fn: Callable[[Any], Any], items: Iterable[Any]) -> int:
        """submit() для каждого элемента + join(). Возвращает число обработанных задач."""
        for item in items:
            self.submit(fn, item)
        self.join()
        return self.completed

    def shutdown(self) -> None:
        """Останавливает пул. Повторные вызовы ничего не делают."""
        if self._closed:
            return
        self._closed = True

        abandoned = len(self._in_flight)
        if abandoned:
            logger.warning(f"Shutting down with {abandoned} unfinished task(s)")
        self._executor.shutdown(wait=True, cancel_futures=self._failed or abandoned > 0)
        self._in_flight.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self._failed = True
        self.shutdown()
        return False
