"""Terminal reporting for loader runs."""

from modloader.monitor.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
