from .database import Database
from .models import StatsCounters, StatsSnapshot, Task
from .repository import Repository

__all__ = ["Database", "StatsCounters", "StatsSnapshot", "Task", "Repository"]
