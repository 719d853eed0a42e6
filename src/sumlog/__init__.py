"""SumLog - cached addition service with a durable calculation history."""

__version__ = "0.1.0"
