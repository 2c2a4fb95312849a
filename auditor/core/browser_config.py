"""Centralized browser configuration for audit sessions.

Shared constants for launching low-footprint Chromium instances and for the
browsing contexts the navigation controller opens in them.
"""

from playwright.async_api import ViewportSize

# Chromium launch arguments for a restricted, low-resource profile.
# --no-sandbox / --disable-setuid-sandbox: needed to run as root in containers
#   (SECURITY TRADEOFF: reduces process isolation, only use in trusted hosts)
# --no-zygote: reduces the number of helper processes per browser
CHROMIUM_LOW_FOOTPRINT_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--disable-gpu",
    "--disable-dev-tools",
    "--no-first-run",
    "--no-zygote",
    "--deterministic-fetch",
    "--disable-features=TranslateUI",
    "--disable-ipc-flooding-protection",
]

# Viewport used for full scans
SCAN_VIEWPORT: ViewportSize = {"width": 1920, "height": 1080}

# Smaller viewport for the quick availability check
PROBE_VIEWPORT: ViewportSize = {"width": 1280, "height": 720}

SCAN_EXTRA_HEADERS = {"Accept-Language": "en-US,en;q=0.9"}


def remote_debugging_arg(port: int) -> str:
    """Return the launch argument exposing the DevTools endpoint on ``port``."""
    return f"--remote-debugging-port={port}"
