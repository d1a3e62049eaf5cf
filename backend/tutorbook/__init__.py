"""Session lifecycle and payroll engine for one-to-one tutoring."""

__version__ = "0.1.0"
