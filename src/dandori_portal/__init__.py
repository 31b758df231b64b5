"""Dandori Portal package.

Multi-tenant HR portal organized by feature modules (attendance, leave,
workflow, payroll, year_end, assets, saas, billing, ...) with a thin Flask
controller layer over service and repository layers.
"""

__version__ = "0.1.0"
