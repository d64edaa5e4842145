"""
Trip playback package.

This package reconstructs the ground path of a trip for map playback:
- models.py: value types (points, pings, trip boundaries, trajectories)
- serializers.py: backend payload parsing and map-widget payloads
- services/: position source, trajectory assembly, place names, playback
- api/: HTTP routes exposing the playback payload
"""
