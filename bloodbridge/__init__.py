"""
BloodBridge — role-based REST backend connecting blood donors, recipients,
volunteers and administrators.
"""

__version__ = "1.0.0"
