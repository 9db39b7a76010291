"""Employee portal backend.

Feature modules (users, employees, subjects, attendance) each hold a model,
a repository protocol with its MySQL implementation, and a service. The
GraphQL layer resolves nested data through request-scoped loaders and checks
every protected operation with the access gate.
"""
