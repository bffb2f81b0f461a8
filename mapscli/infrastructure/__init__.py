"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP, configuration files,
console) and hosts the per-API request builders and the resilience services.
"""
