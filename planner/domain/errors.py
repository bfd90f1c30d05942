"""Exception hierarchy for the planner recurrence engine."""


class PlannerError(Exception):
    """Base exception for all planner errors."""


class RuleNotFoundError(PlannerError, LookupError):
    """A recurrence rule id did not resolve to a stored rule.

    Raised by the loading layer only; the generator and the overlay never
    look rules up themselves.
    """

    def __init__(self, rule_id: int):
        super().__init__(f"Recurrence rule {rule_id} not found")
        self.rule_id = rule_id


class UnknownRecurrenceTypeError(PlannerError, ValueError):
    """A rule carries a recurrence kind outside daily/weekly/monthly/yearly.

    Only raised when strict recurrence types are enabled; the default is to
    produce no occurrences for such a rule.
    """

    def __init__(self, recurrence_type):
        super().__init__(f"Unknown recurrence type: {recurrence_type!r}")
        self.recurrence_type = recurrence_type
