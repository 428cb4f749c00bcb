"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP, Redis, the local disk,
the console) by implementing the interfaces defined in the domain layer.
Also includes the resilience and caching services.
"""
