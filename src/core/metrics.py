"""In-process metrics collector with Prometheus text exposition."""

from __future__ import annotations

from collections import defaultdict
from threading import Lock
import time
from typing import Dict, Tuple


_lock = Lock()
_started_at = time.time()

_http_requests_total: Dict[Tuple[str, str, str], int] = defaultdict(int)
_http_request_duration_sum: Dict[Tuple[str, str], float] = defaultdict(float)
_http_request_duration_count: Dict[Tuple[str, str], int] = defaultdict(int)
_onboarding_started_total: Dict[str, int] = defaultdict(int)
_claim_verifications_total: Dict[str, int] = defaultdict(int)
_makerspace_finalized_total: Dict[str, int] = defaultdict(int)
_email_delivery_total: Dict[Tuple[str, str], int] = defaultdict(int)
_user_auth_total: Dict[Tuple[str, str], int] = defaultdict(int)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _normalize_label(value: str, *, fallback: str = "unknown") -> str:
    normalized = (value or "").strip()
    return normalized or fallback


def record_http_request(*, method: str, path: str, status_code: int, duration_seconds: float) -> None:
    status = str(status_code)
    method_label = method.upper()
    path_label = path or "unknown"
    duration = max(duration_seconds, 0.0)

    with _lock:
        _http_requests_total[(method_label, path_label, status)] += 1
        _http_request_duration_sum[(method_label, path_label)] += duration
        _http_request_duration_count[(method_label, path_label)] += 1


def record_onboarding_started(*, outcome: str) -> None:
    with _lock:
        _onboarding_started_total[_normalize_label(outcome)] += 1


def record_claim_verification(*, valid: bool) -> None:
    with _lock:
        _claim_verifications_total["valid" if valid else "invalid"] += 1


def record_makerspace_finalized(*, outcome: str) -> None:
    with _lock:
        _makerspace_finalized_total[_normalize_label(outcome)] += 1


def record_email_delivery(*, kind: str, status: str) -> None:
    with _lock:
        _email_delivery_total[(_normalize_label(kind), _normalize_label(status))] += 1


def record_user_auth(*, event: str, outcome: str) -> None:
    with _lock:
        _user_auth_total[(_normalize_label(event), _normalize_label(outcome))] += 1


def _append_counter(lines: list[str], name: str, help_text: str, label: str, values: Dict[str, int]) -> None:
    lines.extend(
        [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} counter",
        ]
    )
    for key, value in sorted(values.items()):
        lines.append(f'{name}{{{label}="{_escape_label(key)}"}} {value}')


def _append_pair_counter(
    lines: list[str],
    name: str,
    help_text: str,
    labels: Tuple[str, str],
    values: Dict[Tuple[str, str], int],
) -> None:
    lines.extend([f"# HELP {name} {help_text}", f"# TYPE {name} counter"])
    first, second = labels
    for (first_value, second_value), value in sorted(values.items()):
        lines.append(
            f'{name}{{{first}="{_escape_label(first_value)}",{second}="{_escape_label(second_value)}"}} {value}'
        )


def render_prometheus_metrics(*, app_name: str, app_version: str, env: str) -> str:
    uptime = max(time.time() - _started_at, 0.0)

    with _lock:
        http_total = dict(_http_requests_total)
        duration_sum = dict(_http_request_duration_sum)
        duration_count = dict(_http_request_duration_count)
        onboarding_started_total = dict(_onboarding_started_total)
        claim_verifications_total = dict(_claim_verifications_total)
        makerspace_finalized_total = dict(_makerspace_finalized_total)
        email_delivery_total = dict(_email_delivery_total)
        user_auth_total = dict(_user_auth_total)

    lines = [
        "# HELP makerhub_build_info Build metadata.",
        "# TYPE makerhub_build_info gauge",
        (
            f'makerhub_build_info{{app_name="{_escape_label(app_name)}",'
            f'version="{_escape_label(app_version)}",env="{_escape_label(env)}"}} 1'
        ),
        "# HELP makerhub_process_uptime_seconds Process uptime in seconds.",
        "# TYPE makerhub_process_uptime_seconds gauge",
        f"makerhub_process_uptime_seconds {uptime:.6f}",
        "# HELP makerhub_http_requests_total Total HTTP requests.",
        "# TYPE makerhub_http_requests_total counter",
    ]

    for (method, path, status), value in sorted(http_total.items()):
        lines.append(
            (
                f'makerhub_http_requests_total{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}",status="{_escape_label(status)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP makerhub_http_request_duration_seconds Request duration summary.",
            "# TYPE makerhub_http_request_duration_seconds summary",
        ]
    )
    for (method, path), value in sorted(duration_sum.items()):
        lines.append(
            (
                f'makerhub_http_request_duration_seconds_sum{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value:.6f}'
            )
        )
    for (method, path), value in sorted(duration_count.items()):
        lines.append(
            (
                f'makerhub_http_request_duration_seconds_count{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value}'
            )
        )

    _append_counter(
        lines,
        "makerhub_onboarding_started_total",
        "Onboarding requests by outcome.",
        "outcome",
        onboarding_started_total,
    )
    _append_counter(
        lines,
        "makerhub_claim_verifications_total",
        "Claim token verifications by result.",
        "result",
        claim_verifications_total,
    )
    _append_counter(
        lines,
        "makerhub_makerspace_finalized_total",
        "Finalization attempts by outcome.",
        "outcome",
        makerspace_finalized_total,
    )
    _append_pair_counter(
        lines,
        "makerhub_email_delivery_total",
        "Outbound emails by kind and delivery status.",
        ("kind", "status"),
        email_delivery_total,
    )
    _append_pair_counter(
        lines,
        "makerhub_user_auth_total",
        "User account events by outcome.",
        ("event", "outcome"),
        user_auth_total,
    )

    lines.append("")
    return "\n".join(lines)


def reset_metrics_for_tests() -> None:
    global _started_at
    with _lock:
        _http_requests_total.clear()
        _http_request_duration_sum.clear()
        _http_request_duration_count.clear()
        _onboarding_started_total.clear()
        _claim_verifications_total.clear()
        _makerspace_finalized_total.clear()
        _email_delivery_total.clear()
        _user_auth_total.clear()
    _started_at = time.time()
