"""
Finance Gateway - Installment Schedules & SkipCash Payments

A FastAPI-based microservice that generates and maintains vehicle
financing installment schedules and reconciles card payments made
through the SkipCash gateway.
"""

__version__ = "0.1.0"
