"""
Members Module

Registry of confirmed (paid and approved) participants. Members are only
created by the enrollment workflow when an admin approves a payment.
"""
