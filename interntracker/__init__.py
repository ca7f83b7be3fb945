"""Internship application tracker: reminders and calendar export."""
