"""Arch Linux + sway installer (resumable, stage-aware).

Core design goals:
- Ordered task lists that resume after the last completed task
- Stages separated by reboots, with progress carried across chroot and user
- Parameters collected once and reused by every stage
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
