"""
API Routes - executions, scripts and recordings.
"""
