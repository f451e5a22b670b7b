"""
Workers Celery.
"""
