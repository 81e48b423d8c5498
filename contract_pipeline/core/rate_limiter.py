import threading
import time
from collections import deque
from typing import Callable, Deque, Dict


class SlidingWindowRateLimiter:
    """
    Admissão por cliente em janela deslizante.

    Requisições acima do limite são rejeitadas na hora (nunca enfileiradas)
    e não contam para a janela. O relógio é injetado para testes.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def tracked_clients(self) -> int:
        """Clientes com hits ainda dentro da janela."""
        with self._lock:
            return len(self._hits)

    def _evict(self, key: str, now: float) -> Deque[float]:
        """Descarta hits vencidos; cliente sem hits sai do mapa."""
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _sweep(self, now: float) -> None:
        """No máximo uma varredura por janela: remove clientes ociosos."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._evict(key, now)

    def hit(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            hits = self._evict(key, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            hits = self._evict(key, now)
            return self.max_requests - len(hits)

    def retry_after(self, key: str) -> float:
        """Segundos até liberar uma vaga (0 se já houver vaga)."""
        now = self._clock()
        with self._lock:
            hits = self._evict(key, now)
            if len(hits) < self.max_requests:
                return 0.0
            return max(0.0, self.window_seconds - (now - hits[0]))
