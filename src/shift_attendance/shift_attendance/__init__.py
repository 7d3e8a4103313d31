"""Shift attendance package.

Feature modules (attendance, shifts, notifications, ...) expose SOLID
service/repository layers; Flask controllers and the job scheduler are thin
entry points on top of them.
"""
