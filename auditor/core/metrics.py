"""Prometheus metrics configuration."""

from prometheus_client import Counter, Gauge, Histogram

# Scan Metrics
scans_total = Counter("scans_total", "Total scan requests", ["outcome"])

scan_duration_seconds = Histogram("scan_duration_seconds", "Scan duration in seconds")

active_scans = Gauge("active_scans", "Number of currently running scans")

# Browser Metrics
browser_sessions_active = Gauge("browser_sessions_active", "Number of live browser sessions")

browser_launches_total = Counter("browser_launches_total", "Total browser processes launched")

browser_pool_exhausted_total = Counter(
    "browser_pool_exhausted_total", "Acquire attempts rejected at the concurrency ceiling"
)

browser_sessions_expired_total = Counter(
    "browser_sessions_expired_total", "Sessions force-closed by the age sweep"
)

# Navigation Metrics
navigation_attempts_total = Counter(
    "navigation_attempts_total", "Page load attempts", ["strategy", "outcome"]
)

navigation_failures_total = Counter(
    "navigation_failures_total", "Page loads that exhausted every strategy", ["kind"]
)

browser_page_load_seconds = Histogram(
    "browser_page_load_seconds", "Browser page load time in seconds"
)

# Audit Metrics
audits_total = Counter("audits_total", "Audit executions by terminal state", ["kind", "state"])

audit_duration_seconds = Histogram(
    "audit_duration_seconds", "Audit duration in seconds", ["kind"]
)

error_pages_detected_total = Counter(
    "error_pages_detected_total", "Loaded pages flagged as backend error surfaces"
)

# Rate Limiting Metrics
rate_limit_rejections_total = Counter(
    "rate_limit_rejections_total", "Requests rejected by the rate limiter"
)

rate_limit_identities = Gauge("rate_limit_identities", "Client identities currently tracked")

# Report Store Metrics
reports_stored = Gauge("reports_stored", "Reports currently held in memory")

reports_evicted_total = Counter("reports_evicted_total", "Reports evicted by sweep", ["reason"])

# Suggestion Metrics
suggestions_total = Counter("suggestions_total", "Suggestion requests", ["outcome"])
