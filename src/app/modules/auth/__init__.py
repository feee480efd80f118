"""
Admin Authentication Module

Password login for the single admin account and the session guard that
protects every /admin route.

API Endpoints:
- POST /admin/login
- POST /admin/logout
"""
