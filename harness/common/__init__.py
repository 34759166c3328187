"""Logging and retry decorators for handlers, and the in-process event bus."""