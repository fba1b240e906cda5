"""
Layer config cache.

Process-memory cache of transformed layer configs keyed by WebMap id.
Entries live until an explicit clear. Concurrent loads for the same id
share a single in-flight Future, so the WebMap is fetched and transformed
once.

Exports:
    LayerConfigCache
"""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional, Sequence, Tuple

from exceptions import ContractViolationError
from util_logger import ComponentType, LoggerFactory

from .models import LayerConfig

LayerConfigs = Tuple[LayerConfig, ...]


class LayerConfigCache:
    """
    Thread-safe memoization of layer configs per WebMap id.

    Construct one per process (or per test) and inject it where needed.
    """

    def __init__(self):
        self._entries: Dict[str, LayerConfigs] = {}
        self._in_flight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self.logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "LayerConfigCache")

    def get(self, webmap_id: str) -> Optional[LayerConfigs]:
        with self._lock:
            return self._entries.get(webmap_id)

    def set(self, webmap_id: str, configs: Sequence[LayerConfig]) -> LayerConfigs:
        """Store configs for a WebMap id; returns the stored immutable tuple."""
        stored = tuple(configs)
        with self._lock:
            self._entries[webmap_id] = stored
        return stored

    def clear(self, webmap_id: Optional[str] = None) -> None:
        """Clear one entry, or every entry when no id is given."""
        with self._lock:
            if webmap_id is None:
                self._entries.clear()
            else:
                self._entries.pop(webmap_id, None)
        self.logger.info(
            "Cleared layer config cache" if webmap_id is None else f"Cleared cache entry {webmap_id}",
            extra={'custom_dimensions': {'webmap_id': webmap_id}}
        )

    def __contains__(self, webmap_id: str) -> bool:
        with self._lock:
            return webmap_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_load(
        self,
        webmap_id: str,
        loader: Callable[[], Sequence[LayerConfig]]
    ) -> LayerConfigs:
        """
        Return cached configs, or run loader once and cache its result.

        Callers arriving while a load is running wait on the same Future.
        A failed load is not cached: its exception is raised to every
        waiting caller and the next call retries.

        Raises:
            ContractViolationError: If loader returns None
        """
        with self._lock:
            cached = self._entries.get(webmap_id)
            if cached is not None:
                self.logger.debug(f"Cache hit for {webmap_id}")
                return cached

            future = self._in_flight.get(webmap_id)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._in_flight[webmap_id] = future

        if not is_owner:
            self.logger.debug(f"Waiting on in-flight load for {webmap_id}")
            return future.result()

        try:
            configs = loader()
            if configs is None:
                raise ContractViolationError(
                    f"Layer config loader for {webmap_id} returned None"
                )
            stored = tuple(configs)
            with self._lock:
                self._entries[webmap_id] = stored
            future.set_result(stored)
            return stored
        except BaseException as e:
            future.set_exception(e)
            raise
        finally:
            with self._lock:
                self._in_flight.pop(webmap_id, None)
