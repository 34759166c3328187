"""Kanban boards: domain model, command and query handlers, and command-line front end."""