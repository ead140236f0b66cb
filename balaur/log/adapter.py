import logging
from typing import Any, MutableMapping, Tuple


class WorkerLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the worker's pid so pool output can be told apart."""

    def __init__(self, logger: logging.Logger, pid: int) -> None:
        super().__init__(logger, {"worker_pid": pid})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"Worker {self.extra['worker_pid']}:\t{msg}", kwargs
