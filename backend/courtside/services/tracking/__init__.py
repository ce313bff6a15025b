"""Basketball tracking core: event shapes, possession, event log and stats.

The shape validator, the possession machine and the stats fold are pure
and know nothing about Flask; ``tracker`` ties them to the database and is
what HTTP routes and socket handlers should import.
"""
