import threading
from collections import defaultdict
from typing import Dict, Tuple


class Metrics:
    """In-process counters rendered as plain text on /metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

        # (path, status) -> count
        self._http_requests_total: Dict[Tuple[str, str], int] = defaultdict(int)

        # (operation, result) -> count
        self._operations_total: Dict[Tuple[str, str], int] = defaultdict(int)

        # simple latency buckets in ms
        self._latency_buckets = {
            "100": 0,
            "500": 0,
            "+Inf": 0,
        }
        self._latency_count = 0

    def inc_http_request(self, path: str, status: int) -> None:
        with self._lock:
            self._http_requests_total[(path, str(status))] += 1

    def inc_operation(self, operation: str, result: str) -> None:
        with self._lock:
            self._operations_total[(operation, result)] += 1

    def observe_latency_ms(self, latency_ms: float) -> None:
        with self._lock:
            self._latency_count += 1
            if latency_ms <= 100:
                self._latency_buckets["100"] += 1
            if latency_ms <= 500:
                self._latency_buckets["500"] += 1
            self._latency_buckets["+Inf"] += 1

    def render(self) -> str:
        lines: list[str] = []

        with self._lock:
            for (path, status), value in self._http_requests_total.items():
                lines.append(
                    f'http_requests_total{{path="{path}",status="{status}"}} {value}'
                )

            for (operation, result), value in self._operations_total.items():
                lines.append(
                    f'message_operations_total{{operation="{operation}",result="{result}"}} {value}'
                )

            for le, value in self._latency_buckets.items():
                lines.append(f'request_latency_ms_bucket{{le="{le}"}} {value}')
            lines.append(f"request_latency_ms_count {self._latency_count}")

        return "\n".join(lines) + "\n"
