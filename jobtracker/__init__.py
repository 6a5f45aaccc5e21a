# Job Tracker - Personal job application tracker
"""
Job Tracker - Record, filter, and visualize your job applications.

Keeps a per-user list of applications in sync with the database, computes
dashboard statistics and board views, and exports everything to CSV.
"""

__version__ = "1.0.0"
__author__ = "Job Tracker"
__description__ = "Personal job application tracker"
