"""
Approval workflow engine for HR and payroll records.
"""

__version__ = "1.0.0"
