"""TaskDesk — role-based task management backend.

Admins manage accounts, managers create and assign tasks, users work
the tasks assigned to them. Authentication is stateless (JWT bearer
tokens) and every request carries an explicit identity through the
service layer.
"""

__version__ = "0.1.0"
