import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Tuple

from PIL import Image

from . import config


def load_thumbnail(path: Path, size: Tuple[int, int] = config.THUMBNAIL_SIZE) -> Optional[Image.Image]:
    """
    Decodes `path` and shrinks it to fit `size`.
    Returns None for anything Pillow can't open (RAW, AI, EPS, missing files...).
    """
    try:
        with Image.open(path) as img:
            img.thumbnail(size)
            return img.copy()
    except Exception as e:
        logging.debug(f"No thumbnail for {path}: {e}")
        return None


class ThumbnailCache:
    """
    Asynchronous thumbnail loader with an LRU cache.

    request() always returns a Future. Requests for a path that is already
    loading share the same Future, so each file is decoded at most once at a
    time. The in-flight registry and the cache are guarded by a single lock.
    """

    def __init__(self,
                 loader: Callable[[Path], Optional[Image.Image]] = load_thumbnail,
                 max_entries: int = config.THUMBNAIL_CACHE_ENTRIES,
                 max_workers: int = config.THUMBNAIL_WORKERS):
        self.loader = loader
        self.max_entries = max_entries
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="movr-thumb")
        self._lock = threading.Lock()
        self._cache: "OrderedDict[str, Optional[Image.Image]]" = OrderedDict()
        self._in_flight: Dict[str, Future] = {}

    def request(self, path: Path) -> Future:
        key = str(Path(path).resolve())

        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                done: Future = Future()
                done.set_result(self._cache[key])
                return done

            pending = self._in_flight.get(key)
            if pending is not None:
                return pending

            future = self._executor.submit(self.loader, Path(path))
            self._in_flight[key] = future

        future.add_done_callback(lambda f, k=key: self._finish(k, f))
        return future

    def get(self, path: Path, timeout: Optional[float] = None) -> Optional[Image.Image]:
        """Blocking convenience wrapper around request()."""
        return self.request(path).result(timeout=timeout)

    def preload(self, paths: Iterable[Path], limit: int = config.THUMBNAIL_PRELOAD_LIMIT):
        for i, p in enumerate(paths):
            if i >= limit:
                break
            self.request(p)

    def cached(self, path: Path) -> bool:
        with self._lock:
            return str(Path(path).resolve()) in self._cache

    def clear(self):
        with self._lock:
            self._cache.clear()
            self._in_flight.clear()

    def close(self):
        self._executor.shutdown(wait=True)

    def _finish(self, key: str, future: Future):
        with self._lock:
            # A clear() while loading drops the result
            if self._in_flight.get(key) is not future:
                return
            del self._in_flight[key]
            if future.cancelled() or future.exception() is not None:
                return
            self._cache[key] = future.result()
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_entries:
                self._cache.popitem(last=False)
