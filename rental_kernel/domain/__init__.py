"""Pure domain helpers: clock and calendar-month arithmetic."""
