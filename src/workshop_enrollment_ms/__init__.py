"""Workshop Enrollment Microservice."""

__version__ = "1.0.0"
