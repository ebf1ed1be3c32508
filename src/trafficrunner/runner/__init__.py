"""
Lifecycle phases for TrafficRunner: provision, dispatch, reclaim.
"""
