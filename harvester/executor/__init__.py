"""Execution engine: sessions, task lists, retry search and scroll-collect."""
