"""
Translations app for the newsroom.
"""
