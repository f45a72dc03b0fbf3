"""Core HR module — companies, employees, login IDs and the directory."""

from dayflow.core_hr.models import Company, Employee, JoiningSequence

__all__ = ["Company", "Employee", "JoiningSequence"]
