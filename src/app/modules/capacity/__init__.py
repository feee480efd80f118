"""
Capacity Module

Configuration singleton (max places, session flag) and the capacity gate
consulted before new submissions and before every member creation.

API Endpoints:
- GET /api/inscriptions-count
- POST /admin/toggle-session
- POST /admin/update-places
"""

