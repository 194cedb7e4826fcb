"""Domain orchestration for calendar exports."""

from .export_pipeline import CalendarExport, ExportOutcome, compile_calendar

__all__ = ["CalendarExport", "ExportOutcome", "compile_calendar"]
