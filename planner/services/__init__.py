"""Services layer - Business logic"""

from .recurrence_expander import RecurrenceExpander
from .agenda_service import AgendaService, AgendaEntry, DayAgenda

__all__ = ["RecurrenceExpander", "AgendaService", "AgendaEntry", "DayAgenda"]
