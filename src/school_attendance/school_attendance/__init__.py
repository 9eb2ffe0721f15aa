"""School attendance package.

This package is organized by feature modules (attendance, events, reports, ...)
with a thin Flask controller layer and pure rule/service/repository layers.
"""
