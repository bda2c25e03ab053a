"""SVS absence planner — leave requests, sick leave and task assignments."""
