from collections import OrderedDict
import threading
import time


class TTLCache:
    """Small LRU cache with per-entry expiry, safe to share between threads."""

    def __init__(self, max_items=128, ttl_s=900):
        self.max = max_items
        self.ttl = ttl_s
        self._data = OrderedDict()
        self._lock = threading.Lock()

    def _purge(self):
        now = time.time()
        keys = [k for k, (v, ts) in self._data.items() if now - ts > self.ttl]
        for k in keys:
            self._data.pop(k, None)
        # LRU trim
        while len(self._data) > self.max:
            self._data.popitem(last=False)

    def get(self, key):
        with self._lock:
            self._purge()
            if key not in self._data:
                return None
            v, _ts = self._data.pop(key)
            self._data[key] = (v, time.time())  # refresh LRU and expiry
            return v

    def set(self, key, value):
        with self._lock:
            if key in self._data:
                self._data.pop(key)
            self._data[key] = (value, time.time())
            self._purge()

    def setdefault(self, key, factory):
        """Return the value for ``key``, storing ``factory()`` when missing."""
        with self._lock:
            self._purge()
            if key in self._data:
                v, _ts = self._data.pop(key)
            else:
                v = factory()
            self._data[key] = (v, time.time())
            return v

    def pop(self, key):
        with self._lock:
            item = self._data.pop(key, None)
            return item[0] if item else None

    def __len__(self):
        with self._lock:
            self._purge()
            return len(self._data)
