"""Core Application Layer: the client context and CLI use cases.

Connects the domain layer with the infrastructure layer through interfaces.
"""
