"""Mail and Kanban applications built on shared handler and event-bus plumbing."""

__version__ = "0.1.0"