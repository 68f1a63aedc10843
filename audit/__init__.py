"""
Audit trail of domain actions, readable by the syndic of each residence.
"""
