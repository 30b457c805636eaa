"""HR Portal package.

Feature modules (employees, attendance, leaves, payroll, expenses, trips,
documents, ...) each carry a model, a repository interface with its MySQL
implementation, a service holding the business rules and a thin Flask
controller. Wiring lives in :mod:`container`; the app factory in :mod:`main`.
"""
