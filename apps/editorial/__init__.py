"""
Editorial dashboard app: pipeline metrics and SLA monitoring.
"""
