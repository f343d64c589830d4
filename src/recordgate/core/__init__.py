"""Core functionality for RecordGate.

Configuration, logging, exceptions, the service registry and the event
pipeline.
"""
