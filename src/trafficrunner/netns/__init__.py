"""
Network namespace planning for TrafficRunner.

Naming rules, address planning, command construction and host inspection.
"""
