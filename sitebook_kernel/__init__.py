"""
SiteBook Kernel

Domain records, coercion helpers, typed exceptions and structured logging
shared by the construction-project engines:
- Schedule of values / payment application records
- Reportable project collections (expenses, daily logs, RFIs, inspections)
- Report configuration types
"""

__version__ = "0.1.0"
