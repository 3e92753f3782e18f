"""Service layer — use cases orchestrating store, policy and strategies.

Routes translate HTTP into service calls; services never see requests.
The caller's identity is always an explicit argument.
"""
