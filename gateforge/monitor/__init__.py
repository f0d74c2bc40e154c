"""Terminal rendering of gate history and build reports."""

from gateforge.monitor.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
