"""Room services: broadcasting and background upkeep.

Socket handlers and the app factory import these, keeping transport
fan-out and the stale room sweep apart from the room state itself.
"""
