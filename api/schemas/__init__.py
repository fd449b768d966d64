"""
Request schemas for the CareTrack API
"""
