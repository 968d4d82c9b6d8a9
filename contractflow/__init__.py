"""Contract lifecycle service for freelancer/client agreements"""

__version__ = "1.0.0"
