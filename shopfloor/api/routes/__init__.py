from . import checklists, cutlists, dashboard, jobs, materials, realtime, recuts

__all__ = ["checklists", "cutlists", "dashboard", "jobs", "materials", "realtime", "recuts"]
