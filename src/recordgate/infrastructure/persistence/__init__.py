"""Persistence: engine management, bookkeeping models, schema catalog and the record gateway."""
