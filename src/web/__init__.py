"""
Reporting API for the presence monitor.
"""
