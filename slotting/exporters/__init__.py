"""Excel export of assignment results."""

from .unload_plan_exporter import UnloadPlanExporter, export_unload_plan

__all__ = ["UnloadPlanExporter", "export_unload_plan"]
