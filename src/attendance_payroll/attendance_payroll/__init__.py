"""Attendance & Payroll core package.

Feature modules (geofence, timing, attendance, payroll, ...) each carry
their own model/repository/service layers, with a thin Flask controller
layer on top.
"""
