"""Shift Roster package.

This package is organized by feature modules (schedules, shifts, requests,
attendance, payroll, vacation, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
